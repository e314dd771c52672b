from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

UTC = timezone.utc

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return a tz-aware UTC timestamp."""
    return datetime.now(UTC)


def is_tz_aware(value: datetime) -> bool:
    """True if a datetime is timezone-aware (has a non-None UTC offset)."""
    return value.tzinfo is not None and value.utcoffset() is not None


def coerce_utc(value: datetime, *, assume_naive_is_utc: bool = True) -> datetime:
    """Coerce any datetime to tz-aware UTC.

    Adapters may call this when receiving datetimes from untyped boundaries.
    """
    if is_tz_aware(value):
        return value.astimezone(UTC)

    if not assume_naive_is_utc:
        raise ValueError("Naive datetime cannot be coerced without an explicit assumption")

    return value.replace(tzinfo=UTC)


def isoformat_z(value: datetime | None) -> str | None:
    """RFC3339-ish UTC string with a `Z` suffix."""
    if value is None:
        return None
    dt = coerce_utc(value)
    return dt.isoformat().replace("+00:00", "Z")


def parse_isoformat(value: str | datetime | None) -> datetime | None:
    """Parse an RFC3339 string (a `Z` suffix included) into a tz-aware UTC datetime."""
    if value is None or isinstance(value, datetime):
        return coerce_utc(value) if value is not None else None
    return coerce_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
