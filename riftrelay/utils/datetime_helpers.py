"""Datetime utility functions for timezone handling and cycle bucketing."""
from datetime import date, datetime, timedelta, UTC
from typing import Optional
import re

_DAY_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_WEEK_KEY_PATTERN = re.compile(r"^(\d{4})-W(\d{2})$")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware in UTC.

    Stored documents may carry naive datetimes; those are treated as UTC.

    Example:
        >>> naive_dt = datetime(2025, 1, 1, 12, 0, 0)
        >>> ensure_utc(naive_dt).tzinfo == UTC
        True

        >>> ensure_utc(None) is None
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_epoch_millis(dt: datetime) -> int:
    """Milliseconds since the Unix epoch for an aware datetime."""
    return int(ensure_utc(dt).timestamp() * 1000)


def day_key(dt: datetime) -> str:
    """Calendar day bucket (UTC) in ``YYYY-MM-DD`` form."""
    return ensure_utc(dt).strftime("%Y-%m-%d")


def week_key(dt: datetime) -> str:
    """ISO-8601 week bucket (UTC, Monday start) in ``YYYY-Www`` form.

    The year is the ISO week-numbering year, so 2021-01-03 belongs to
    ``2020-W53``.
    """
    iso_year, iso_week, _ = ensure_utc(dt).isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def day_key_to_datetime(key: str) -> datetime:
    """Midnight UTC of the given day key.

    Raises:
        ValueError: If the key is not a valid ``YYYY-MM-DD`` date.
    """
    match = _DAY_KEY_PATTERN.match(key or "")
    if not match:
        raise ValueError(f"Invalid day key: {key!r}")
    year, month, day = (int(part) for part in match.groups())
    return datetime(year, month, day, tzinfo=UTC)


def week_key_to_datetime(key: str) -> datetime:
    """Monday 00:00 UTC of the given ISO week key.

    Raises:
        ValueError: If the key is not a valid ``YYYY-Www`` week.
    """
    match = _WEEK_KEY_PATTERN.match(key or "")
    if not match:
        raise ValueError(f"Invalid week key: {key!r}")
    year, week = int(match.group(1)), int(match.group(2))
    monday = date.fromisocalendar(year, week, 1)
    return datetime(monday.year, monday.month, monday.day, tzinfo=UTC)


def add_days(key: str, days: int) -> str:
    """Shift a day key by ``days`` (negative values move backwards)."""
    return day_key(day_key_to_datetime(key) + timedelta(days=days))


def cycle_key(scope: str, dt: datetime) -> str:
    """Cycle bucket for a ``daily`` or ``weekly`` scope."""
    if scope == "daily":
        return day_key(dt)
    if scope == "weekly":
        return week_key(dt)
    raise ValueError(f"Unknown cycle scope: {scope!r}")
