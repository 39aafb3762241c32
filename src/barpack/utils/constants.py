"""
Constants for the bar-pack application.

This module defines all system-wide constants including:
- Application metadata
- Data-pack archive layout and versioning
- Pricing policy constants
"""

from decimal import Decimal
from typing import List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Bar Pack"
APP_VERSION = "0.1.0"
DATABASE_FILENAME = "bar_pack.db"

# ============================================================================
# Data-Pack Archive Layout
# ============================================================================

# Published identifier of the structured recipe schema (draft 02)
SCHEMA_URL = "https://barassistant.app/cocktail-02.schema.json"

# Oldest manifest version this build can read
MIN_SUPPORTED_VERSION = "0.1.0"

MANIFEST_FILENAME = "_meta.json"
RECIPES_DIR = "cocktails"

# Suffix of an archive that is still being written
PARTIAL_SUFFIX = ".part"

# Suffix of an archive whose export was cancelled (no manifest)
INCOMPLETE_SUFFIX = ".incomplete"

# ============================================================================
# Flat Ingredient Import
# ============================================================================

FLAT_INGREDIENT_FIELDS: List[str] = [
    "name",
    "strength",
    "description",
    "origin",
    "color",
    "category",
]

# ============================================================================
# Pricing
# ============================================================================

# Lowest price per use ever reported; pricing never shows an ingredient as free
MIN_PRICE_PER_USE = Decimal("0.01")
