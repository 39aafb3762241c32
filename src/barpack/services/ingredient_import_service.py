"""
Ingredient Import Service - Degraded single-entity import from spreadsheets.

Reads a CSV file with a header row and builds one IngredientExternal per
row through IngredientExternal.from_flat_record(). Flat records never carry
relationships (parents, images, prices). Storing the result is up to the
caller, as with archive imports.

Recognized columns (case-insensitive): name (required), strength,
description, origin, color, category. Other columns are ignored.

Usage:
    from barpack.services.ingredient_import_service import import_ingredients_csv

    result = import_ingredients_csv("ingredients.csv")
    print(result.get_summary())
"""

import csv
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, TextIO

from barpack.services.exceptions import MalformedRecordError, ValidationError
from barpack.services.external_models import IngredientExternal
from barpack.services.logging_utils import get_service_logger, log_operation
from barpack.utils.constants import FLAT_INGREDIENT_FIELDS

logger = get_service_logger(__name__)


@dataclass
class RowError:
    """A spreadsheet row that could not be imported."""

    row_number: int  # 1-based line number, header is line 1
    message: str


class IngredientImportResult:
    """Ingredients read from a flat file, with rejected and duplicate rows."""

    def __init__(self):
        self.ingredients: List[IngredientExternal] = []
        self.errors: List[RowError] = []
        self.skipped: List[RowError] = []

    def get_summary(self) -> str:
        lines = [
            f"Ingredients: {len(self.ingredients)}",
            f"Skipped:     {len(self.skipped)}",
            f"Errors:      {len(self.errors)}",
        ]
        for problem in self.errors + self.skipped:
            lines.append(f"  row {problem.row_number}: {problem.message}")
        return "\n".join(lines)


def read_ingredient_rows(stream: TextIO) -> IngredientImportResult:
    """
    Build ingredients from CSV text.

    Rows without a name are reported as errors; a second row with the same
    derived id as an earlier one is skipped.

    Raises:
        ValidationError: If the header has no "name" column
    """
    reader = csv.DictReader(stream)
    headers = [(h or "").strip().lower() for h in (reader.fieldnames or [])]
    if "name" not in headers:
        raise ValidationError(["CSV header must contain a 'name' column"])

    ignored = sorted(set(headers) - set(FLAT_INGREDIENT_FIELDS) - {""})
    if ignored:
        logger.debug(f"Ignoring unknown columns: {', '.join(ignored)}")

    result = IngredientImportResult()
    seen_ids = set()
    for row in reader:
        row_number = reader.line_num
        try:
            ingredient = IngredientExternal.from_flat_record(row)
        except MalformedRecordError as e:
            result.errors.append(RowError(row_number, e.reason))
            continue

        if ingredient.id in seen_ids:
            result.skipped.append(RowError(row_number, f"duplicate ingredient '{ingredient.name}'"))
            continue

        seen_ids.add(ingredient.id)
        result.ingredients.append(ingredient)

    return result


def import_ingredients_csv(file_path) -> IngredientImportResult:
    """
    Read ingredients from a CSV file.

    Args:
        file_path: Path to a UTF-8 CSV file (a byte-order mark is accepted)

    Returns:
        IngredientImportResult

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the header has no "name" column
    """
    path = Path(file_path)
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        result = read_ingredient_rows(f)

    level = logging.WARNING if result.errors else logging.INFO
    log_operation(
        logger,
        operation="import_ingredients_csv",
        outcome="success" if not result.errors else "partial",
        level=level,
        file_path=str(path),
        record_count=len(result.ingredients),
        error_count=len(result.errors),
    )
    return result


def read_ingredients_text(text: str) -> IngredientImportResult:
    """Convenience wrapper for CSV content already in memory."""
    return read_ingredient_rows(io.StringIO(text))
