"""
timestamps.py — UTC timestamp helpers shared by the record handlers.

All timestamps written to the record store are timezone-aware UTC ISO-8601
strings; everything read back is parsed into aware datetimes.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    return utcnow().isoformat()


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse a stored timestamp. Naive values are treated as UTC.

    Accepts datetimes as-is and the trailing "Z" PostgREST sometimes emits.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value) -> Optional[date]:
    """Parse a YYYY-MM-DD due date; anything unparseable yields None."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None
