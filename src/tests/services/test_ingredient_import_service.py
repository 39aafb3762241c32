"""
Tests for the flat ingredient (CSV) import.

Tests cover:
- Header handling (case-insensitive, unknown columns ignored, name required)
- Row errors (missing name, strength outside 0-100) and duplicate rows
- Reading from a file with a byte-order mark
"""

import logging

import pytest

from barpack.services.exceptions import ValidationError
from barpack.services.ingredient_import_service import (
    import_ingredients_csv,
    read_ingredients_text,
)


CSV_TEXT = (
    "Name,Strength,Description,Origin,Color,Category,Notes\n"
    "London Dry Gin,40,Juniper forward,England,,Spirits,house gin\n"
    ",45,Row without a name,,,,\n"
    "london dry gin,41,Same gin again,,,,\n"
    "Campari,,,,#d0021b,Bitters,\n"
    "Chartreuse,strong,,,,,\n"
)


class TestReadIngredientsText:
    def test_rows_become_ingredients(self):
        result = read_ingredients_text(CSV_TEXT)

        assert [i.name for i in result.ingredients] == ["London Dry Gin", "Campari"]

        gin = result.ingredients[0]
        assert gin.id == "london-dry-gin"
        assert gin.strength == 40.0
        assert gin.description == "Juniper forward"
        assert gin.origin == "England"
        assert gin.color is None
        assert gin.category == "Spirits"
        assert gin.parent_id is None
        assert gin.images == ()
        assert gin.prices == ()

    def test_blank_strength_defaults_to_zero(self):
        campari = read_ingredients_text(CSV_TEXT).ingredients[1]
        assert campari.strength == 0.0
        assert campari.color == "#d0021b"

    def test_errors_and_duplicates(self):
        result = read_ingredients_text(CSV_TEXT)

        assert [(e.row_number, "name" in e.message) for e in result.errors] == [
            (3, True),
            (6, False),
        ]
        assert "strength" in result.errors[1].message
        assert [s.row_number for s in result.skipped] == [4]

    def test_strength_outside_percentage_range(self):
        result = read_ingredients_text("name,strength\nOverproof,140\nWater,-1\nRum,40\n")

        assert [i.name for i in result.ingredients] == ["Rum"]
        assert [e.row_number for e in result.errors] == [2, 3]
        assert all("percentage" in e.message for e in result.errors)

    def test_summary(self):
        summary = read_ingredients_text(CSV_TEXT).get_summary()
        assert "Ingredients: 2" in summary
        assert "Skipped:     1" in summary
        assert "Errors:      2" in summary
        assert "row 4: duplicate ingredient 'london dry gin'" in summary

    def test_missing_name_column(self):
        with pytest.raises(ValidationError):
            read_ingredients_text("title,strength\nGin,40\n")

    def test_empty_input(self):
        with pytest.raises(ValidationError):
            read_ingredients_text("")

    def test_header_only(self):
        result = read_ingredients_text("name\n")
        assert result.ingredients == []
        assert result.errors == []


class TestImportIngredientsCsv:
    def test_reads_file_with_bom(self, tmp_path, caplog):
        path = tmp_path / "ingredients.csv"
        path.write_bytes("\ufeffname,strength\nMezcal,42\n".encode("utf-8"))

        with caplog.at_level(logging.INFO):
            result = import_ingredients_csv(path)

        assert [(i.name, i.strength) for i in result.ingredients] == [("Mezcal", 42.0)]
        record = next(r for r in caplog.records if r.getMessage().startswith("import_ingredients_csv"))
        assert record.outcome == "success"
        assert record.record_count == 1

    def test_partial_import_logged_as_warning(self, tmp_path, caplog):
        path = tmp_path / "ingredients.csv"
        path.write_text(CSV_TEXT, encoding="utf-8")

        with caplog.at_level(logging.INFO):
            import_ingredients_csv(path)

        record = next(r for r in caplog.records if r.getMessage().startswith("import_ingredients_csv"))
        assert record.levelno == logging.WARNING
        assert record.outcome == "partial"
        assert record.error_count == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            import_ingredients_csv(tmp_path / "nope.csv")
