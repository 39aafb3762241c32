"""Tests for service layer structured logging.

These tests verify that export and import operations emit structured
log entries with appropriate context information.
"""

import json
import logging
import zipfile

import pytest

from barpack.services.logging_utils import get_service_logger, log_operation
from barpack.services.recipe_export_service import export_bar
from barpack.services.recipe_import_service import import_archive


class TestLoggingUtilities:
    """Tests for logging utility functions."""

    def test_get_service_logger_returns_logger(self):
        """get_service_logger returns a configured Logger instance."""
        logger = get_service_logger("test_module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "barpack.services.test_module"

    def test_get_service_logger_extracts_module_name(self):
        """get_service_logger extracts module name from full path."""
        logger = get_service_logger("barpack.services.recipe_export_service")
        assert logger.name == "barpack.services.recipe_export_service"

    def test_log_operation_logs_at_info_level(self, caplog):
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(logger, operation="test_op", outcome="success", bar_id=3)

        assert "test_op: success" in caplog.text
        assert caplog.records[0].levelno == logging.INFO

    def test_log_operation_logs_at_custom_level(self, caplog):
        logger = get_service_logger("test")

        with caplog.at_level(logging.DEBUG):
            log_operation(logger, operation="debug_op", outcome="noop", level=logging.DEBUG)

        assert "debug_op: noop" in caplog.text

    def test_log_operation_includes_extra_context(self, caplog):
        """log_operation includes extra context in log records."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(
                logger,
                operation="context_test",
                outcome="success",
                recipe_id="negroni-2",
                record_count=4,
            )

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.operation == "context_test"
        assert record.outcome == "success"
        assert record.recipe_id == "negroni-2"
        assert record.record_count == 4


class TestExportLogging:
    def test_export_logs_success(self, sample_bar, tmp_path, caplog):
        with caplog.at_level(logging.INFO, logger="barpack.services"):
            export_bar(sample_bar["bar_id"], tmp_path / "bar.zip")

        record = next(r for r in caplog.records if r.getMessage() == "export_bar: success")
        assert record.bar_id == sample_bar["bar_id"]
        assert record.record_count == 2
        assert record.missing_images == 0


class TestImportLogging:
    def test_skipped_entry_logged_as_warning(self, tmp_path, caplog, app_config):
        path = tmp_path / "broken.zip"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("cocktails/bad-1/recipe.json", b"[not json")
            zf.writestr(
                "_meta.json",
                json.dumps({"version": app_config.app_version, "type": "schema"}),
            )

        with caplog.at_level(logging.INFO, logger="barpack.services"):
            result = import_archive(path)

        assert len(result.failures) == 1
        skipped = [r for r in caplog.records if r.getMessage() == "load_recipes: entry_skipped"]
        assert len(skipped) == 1
        assert skipped[0].levelno == logging.WARNING
        assert skipped[0].entry == "cocktails/bad-1/recipe.json"

        done = next(r for r in caplog.records if r.getMessage() == "load_recipes: success")
        assert done.failure_count == 1
        assert done.record_count == 0


@pytest.mark.parametrize("level", [logging.WARNING, logging.ERROR])
def test_level_is_respected(caplog, level):
    logger = get_service_logger("levels")
    with caplog.at_level(logging.DEBUG):
        log_operation(logger, operation="op", outcome="x", level=level)
    assert caplog.records[-1].levelno == level
