"""Calendar-day helpers.

Canonical day keys are ``YYYY-MM-DD``. Older data used ``MM-DD-YYYY``; the two
are never interchangeable: a legacy value is always rejected, and
``legacy_to_canonical`` only supplies the suggested replacement that
InvalidDateFormat reports back.
"""
import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

_CANONICAL_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_LEGACY_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")


def is_canonical_date(value) -> bool:
    """True for a real calendar day written as YYYY-MM-DD."""
    if not isinstance(value, str) or not _CANONICAL_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_legacy_date(value) -> bool:
    return isinstance(value, str) and bool(_LEGACY_RE.match(value))


def legacy_to_canonical(value: str) -> str:
    """Convert MM-DD-YYYY to YYYY-MM-DD. Raises ValueError for anything else."""
    m = _LEGACY_RE.match(value or "")
    if not m:
        raise ValueError(f"not a MM-DD-YYYY date: {value!r}")
    month, day, year = m.groups()
    converted = f"{year}-{month}-{day}"
    if not is_canonical_date(converted):
        raise ValueError(f"not a real calendar day: {value!r}")
    return converted


def parse_canonical(value: str) -> date:
    return date.fromisoformat(value)


def format_canonical(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def add_days(value: str, days: int) -> str:
    return format_canonical(parse_canonical(value) + timedelta(days=days))


def today(tz_name: str = "UTC") -> str:
    return format_canonical(datetime.now(ZoneInfo(tz_name)).date())
