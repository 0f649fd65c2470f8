from __future__ import annotations

from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta, timezone
from typing import Optional

from ..core.exceptions import ValidationError

_ONE_MS = timedelta(milliseconds=1)


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mocked easier. Millisecond precision,
    the same as the stored timestamps.
    """
    return to_millis(datetime.now(timezone.utc))


def ensure_utc(value: datetime) -> datetime:
    """Naive values are taken as UTC; aware values are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_millis(value: datetime) -> datetime:
    """UTC value truncated to whole milliseconds (DATETIME(3) and ISO output precision)."""
    value = ensure_utc(value)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def to_db(value: Optional[datetime]) -> Optional[datetime]:
    """MySQL DATETIME columns hold naive UTC."""
    if value is None:
        return None
    return ensure_utc(value).replace(tzinfo=None)


def from_db(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_utc(value)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (a trailing 'Z' is accepted) into UTC."""
    if not value or not str(value).strip():
        raise ValidationError("Timestamp is required.")
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}")


def rounded_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds between two instants, rounded half up on the millisecond delta."""
    millis = (ensure_utc(end) - ensure_utc(start)) // _ONE_MS
    return (millis + 500) // 1000


def month_range(year: int, month: int) -> tuple[datetime, datetime]:
    """UTC [start, end) of a calendar month."""
    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12.")
    # The exclusive end must still be a representable date.
    last_year = MAXYEAR - 1 if int(month) == 12 else MAXYEAR
    if not MINYEAR <= int(year) <= last_year:
        raise ValidationError(f"Year must be between {MINYEAR} and {last_year}.")
    start = datetime(int(year), int(month), 1, tzinfo=timezone.utc)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def day_range(day: date) -> tuple[datetime, datetime]:
    """UTC [start, end) of a calendar day."""
    start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)
