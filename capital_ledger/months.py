"""
Month Keys

A month bucket is identified by a "YYYY-MM" string. Zero padding makes
plain string comparison chronological, so keys sort and compare as-is.
"""

import re
from datetime import date
from typing import Optional

MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

_MONTH_KEY_RE = re.compile(MONTH_KEY_PATTERN)


class InvalidMonthKeyError(ValueError):
    """Raised when a string is not a valid YYYY-MM month key."""
    pass


def is_month_key(value: str) -> bool:
    """Check whether a string is a well-formed month key."""
    return bool(_MONTH_KEY_RE.match(value or ""))


def parse_month_key(key: str) -> tuple[int, int]:
    """Split a month key into (year, month)."""
    if not is_month_key(key):
        raise InvalidMonthKeyError(f"Invalid month key: {key!r} (expected YYYY-MM)")
    year, month = key.split("-")
    return int(year), int(month)


def format_month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_of(day: date) -> str:
    """Truncate a calendar day to its month bucket."""
    return format_month_key(day.year, day.month)


def shift_month(key: str, delta: int) -> str:
    """Move a month key forward (positive delta) or back (negative delta)."""
    year, month = parse_month_key(key)
    index = year * 12 + (month - 1) + delta
    return format_month_key(index // 12, index % 12 + 1)


def previous_month(key: str) -> str:
    return shift_month(key, -1)


def next_month(key: str) -> str:
    return shift_month(key, 1)


def current_month(today: Optional[date] = None) -> str:
    """Month key for today (or the given day)."""
    return month_of(today or date.today())


def month_label(key: str) -> str:
    """Human-readable label, e.g. '2025-08' -> 'August 2025'."""
    year, month = parse_month_key(key)
    return date(year, month, 1).strftime("%B %Y")
