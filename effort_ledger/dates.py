"""Calendar-day helpers. Weeks are ISO weeks (Monday to Sunday)."""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

DayLike = Union[date, str]


def today() -> date:
    """The user's local calendar day."""
    return date.today()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes (as SQLite returns them) as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def as_day(value: Optional[DayLike]) -> Optional[date]:
    """Coerce a date or ``YYYY-MM-DD`` string to a date; None when malformed."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


def iso_week_range(day: date) -> tuple[date, date]:
    """Return (monday, sunday) of the ISO week containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def day_of_week_index(day: date) -> int:
    """1-based position of ``day`` in its ISO week (Monday = 1)."""
    return day.isoweekday()


def date_range(start: date, end: date) -> list[date]:
    """All days from start to end inclusive; empty when start > end."""
    if start > end:
        return []
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]
