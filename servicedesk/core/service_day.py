"""
Service-day clock.

A service day is the civil date, in the fixed service timezone, that a
timestamp falls on. All capacity, waitlist, blocking and history partitioning
goes through ``to_service_day`` so the midnight boundary is the same
everywhere, whatever timezone the database or the host runs in.
"""
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Optional, Union
from zoneinfo import ZoneInfo

from servicedesk.core.config import settings

TimestampLike = Union[datetime, date, str, int, float]


class InvalidTimestampError(ValueError):
    pass


@lru_cache(maxsize=None)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def service_zone() -> ZoneInfo:
    return _zone(settings.SERVICE_TIMEZONE)


def _as_aware(value: TimestampLike) -> datetime:
    if isinstance(value, bool):
        raise InvalidTimestampError(f"Not a timestamp: {value!r}")
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, (int, float)):
        # Epoch seconds
        try:
            ts = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidTimestampError(f"Timestamp out of range: {value!r}") from exc
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise InvalidTimestampError("Empty timestamp")
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise InvalidTimestampError(f"Unparseable timestamp: {value!r}") from exc
    else:
        raise InvalidTimestampError(f"Not a timestamp: {value!r}")

    # Naive values come back from databases without tz support; they are UTC.
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def to_service_day(value: TimestampLike) -> date:
    """Return the service day a timestamp belongs to.

    A bare ``date`` is already a service day and is returned unchanged.
    Anything that cannot be read as a point in time raises
    ``InvalidTimestampError``.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return _as_aware(value).astimezone(service_zone()).date()


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def today(now: Optional[datetime] = None) -> date:
    return to_service_day(now or now_utc())


def parse_service_day(value: Union[str, date]) -> date:
    """Parse a ``YYYY-MM-DD`` string chosen by staff (e.g. a backdated entry)."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise InvalidTimestampError(f"Not a YYYY-MM-DD date: {value!r}") from exc
