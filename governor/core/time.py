from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

UTC = timezone.utc
UTC_TIMEZONE = "UTC"


def _as_utc(reference: datetime) -> datetime:
    if reference.tzinfo is None:
        return reference.replace(tzinfo=UTC)
    return reference.astimezone(UTC)


def local_date(timezone_name: str, reference: datetime) -> date:
    """Calendar date of ``reference`` as seen in ``timezone_name``."""
    return _as_utc(reference).astimezone(ZoneInfo(timezone_name)).date()


def day_boundary(timezone_name: str, reference: datetime) -> datetime:
    """UTC instant at which the local day containing ``reference`` began.

    Naive references are treated as UTC. The result is always timezone-aware UTC,
    so it can be compared directly with ``DateTime(timezone=True)`` columns.
    """
    zone = ZoneInfo(timezone_name)
    local_day = _as_utc(reference).astimezone(zone).date()
    return datetime.combine(local_day, time.min, tzinfo=zone).astimezone(UTC)


def next_day_boundary(timezone_name: str, reference: datetime) -> datetime:
    zone = ZoneInfo(timezone_name)
    local_day = _as_utc(reference).astimezone(zone).date() + timedelta(days=1)
    return datetime.combine(local_day, time.min, tzinfo=zone).astimezone(UTC)


def utc_today(now_utc: datetime) -> date:
    return local_date(UTC_TIMEZONE, now_utc)
