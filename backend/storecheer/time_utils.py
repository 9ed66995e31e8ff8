from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


# Timestamps are stored as naive UTC; store-local days are derived on read.


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _zone(tz_name: str | None) -> tzinfo:
    if not tz_name or tz_name == "UTC":
        return timezone.utc
    return ZoneInfo(tz_name)


def _as_local(tz_name: str | None, now: Optional[datetime]) -> datetime:
    return (now or utcnow()).replace(tzinfo=timezone.utc).astimezone(_zone(tz_name))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with a trailing 'Z', seconds precision. Naive input is UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"


def start_of_local_day(tz_name: str | None, now: Optional[datetime] = None) -> datetime:
    """
    Local midnight of the current day in tz_name, converted back to naive UTC.

    Used as the lower bound of "today" filters: `column >= start_of_local_day(tz)`.
    """
    midnight = _as_local(tz_name, now).replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)


def local_date(tz_name: str | None, now: Optional[datetime] = None) -> date:
    return _as_local(tz_name, now).date()
