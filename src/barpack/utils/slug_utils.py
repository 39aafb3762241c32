"""Slug and stable identifier utilities.

Stable identifiers are what the data pack uses instead of database primary
keys. They are derived deterministically from the record's name and its
database id, so exporting the same bar twice yields the same ids.

Examples:
    >>> create_slug("Old Fashioned")
    'old-fashioned'

    >>> external_id("Crème de Cassis", 12)
    'creme-de-cassis-12'
"""

import re
import unicodedata
from typing import Optional


def create_slug(name: str) -> str:
    """Generate a URL-safe slug from a display name.

    Algorithm:
        1. Normalize Unicode to NFD (decompose accented characters)
        2. Encode to ASCII, ignoring non-ASCII characters
        3. Convert to lowercase
        4. Replace runs of anything non-alphanumeric with a single hyphen
        5. Strip leading/trailing hyphens

    Args:
        name: Display name to convert

    Returns:
        Slug string (lowercase, alphanumeric + hyphens only). Empty input
        results in an empty slug; callers should validate.

    Examples:
        >>> create_slug("Angostura  Bitters")
        'angostura-bitters'

        >>> create_slug("100% Agave Tequila")
        '100-agave-tequila'
    """
    normalized = unicodedata.normalize("NFD", name)
    slug = normalized.encode("ascii", "ignore").decode("ascii").lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    return slug.strip("-")


def external_id(name: str, db_id: Optional[int] = None) -> str:
    """Build the stable export-scoped identifier for a record.

    Args:
        name: Record display name
        db_id: Database primary key, or None for records that have no
            database identity yet (e.g. flat spreadsheet imports)

    Returns:
        "<slug>-<db_id>", or just "<slug>" when db_id is None

    Examples:
        >>> external_id("Gin", 3)
        'gin-3'

        >>> external_id("Gin")
        'gin'
    """
    slug = create_slug(name) or "record"
    if db_id is None:
        return slug
    return f"{slug}-{db_id}"
