"""
Month keys: fixed-width "YYYY-MM" strings.

Zero padding makes lexicographic order equal chronological order, so month
keys are compared as plain strings everywhere.
"""
import re
from datetime import date, datetime


_MONTH_KEY_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def is_month_key(value) -> bool:
    return isinstance(value, str) and bool(_MONTH_KEY_RE.match(value))


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    """Split "2024-05" into (2024, 5). Raises ValueError for malformed keys."""
    if not is_month_key(key):
        raise ValueError(f"Invalid month key: {key!r} (expected YYYY-MM)")
    year, month = key.split("-")
    return int(year), int(month)


def current_month(today: date | None = None) -> str:
    today = today or date.today()
    return month_key(today.year, today.month)


def previous_month(key: str) -> str:
    year, month = parse_month_key(key)
    if month == 1:
        return month_key(year - 1, 12)
    return month_key(year, month - 1)


def month_bounds(key: str) -> tuple[datetime, datetime]:
    """Return [start, end) datetimes of the month (end = first day of next month)."""
    year, month = parse_month_key(key)
    start = datetime(year, month, 1)
    if month == 12:
        return start, datetime(year + 1, 1, 1)
    return start, datetime(year, month + 1, 1)
