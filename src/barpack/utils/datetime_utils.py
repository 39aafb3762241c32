"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from barpack.utils.datetime_utils import utc_now, to_atom_string

    # For SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)

    # For manifest and data-pack timestamps
    stamp = to_atom_string(utc_now())
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def to_atom_string(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO-8601 (Atom) string with UTC offset.

    Naive datetimes are treated as UTC, which is how SQLite hands back
    values written with utc_now().

    Args:
        value: Datetime to format, or None

    Returns:
        String like "2024-01-14T20:39:48+00:00", or None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.replace(microsecond=0).isoformat()
