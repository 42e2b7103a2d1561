"""Scorecard — Calendar Day Helpers.

All scorecard dates are UTC calendar days rendered as ``YYYY-MM-DD``.
"""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

DATE_FORMAT = "%Y-%m-%d"

PRESETS = ("yesterday", "last_7d", "last_14d", "last_30d", "this_month")


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def parse_day(value: str | date | datetime) -> date:
    """Normalise a date, datetime or ISO string to its UTC calendar day."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if len(text) > 10:
        # Full ISO timestamp; honour its offset before taking the day
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parse_day(parsed)
    return datetime.strptime(text, DATE_FORMAT).date()


def format_day(day: date) -> str:
    return day.strftime(DATE_FORMAT)


def normalize_range(
    start: str | date | datetime, end: str | date | datetime
) -> tuple[str, str]:
    """Canonical ``YYYY-MM-DD`` bounds; raises ValueError on unparsable input."""
    return format_day(parse_day(start)), format_day(parse_day(end))


def dates_in_range(start: date, end: date) -> List[str]:
    """Every day from start to end inclusive; empty when start > end."""
    days: List[str] = []
    current = start
    while current <= end:
        days.append(format_day(current))
        current += timedelta(days=1)
    return days


def _validate_date(d: Optional[str]) -> Optional[str]:
    """Return the date string if valid YYYY-MM-DD, else None."""
    if not d:
        return None
    try:
        datetime.strptime(d, DATE_FORMAT)
        return d
    except ValueError:
        return None


def resolve_period(
    date_range: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    today: Optional[date] = None,
) -> tuple[str, str]:
    """Resolve a preset or explicit bounds into (start, end) strings.

    Explicit bounds win over a preset. Defaults to the last 7 complete days.
    """
    today = today or today_utc()

    start_date = _validate_date(start_date)
    end_date = _validate_date(end_date)
    if start_date and end_date:
        return start_date, end_date

    yesterday = today - timedelta(days=1)
    mapping = {
        "yesterday": (yesterday, yesterday),
        "last_7d": (today - timedelta(days=7), yesterday),
        "last_14d": (today - timedelta(days=14), yesterday),
        "last_30d": (today - timedelta(days=30), yesterday),
        "this_month": (today.replace(day=1), today),
    }
    s, e = mapping.get(date_range or "", mapping["last_7d"])
    return format_day(s), format_day(e)
