"""Tests for slug and stable identifier utilities."""

import re

import pytest

from barpack.utils.slug_utils import create_slug, external_id


class TestCreateSlug:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Old Fashioned", "old-fashioned"),
            ("Crème de Cassis", "creme-de-cassis"),
            ("Angostura  Bitters", "angostura-bitters"),
            ("100% Agave Tequila", "100-agave-tequila"),
            ("  Ti' Punch  ", "ti-punch"),
            ("---", ""),
        ],
    )
    def test_create_slug(self, name, expected):
        assert create_slug(name) == expected


class TestExternalId:
    def test_with_database_id(self):
        assert external_id("Gin", 3) == "gin-3"

    def test_without_database_id(self):
        assert external_id("London Dry Gin") == "london-dry-gin"

    def test_empty_slug_falls_back(self):
        assert external_id("???", 7) == "record-7"

    def test_same_input_same_id(self):
        assert external_id("Negroni", 12) == external_id("Negroni", 12)

    def test_ids_are_valid_slugs(self):
        assert re.fullmatch(r"[a-z0-9]+(-[a-z0-9]+)*", external_id("Crème de Cassis", 12))
