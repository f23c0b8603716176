"""Local wall-clock day boundaries for the configured feed timezone."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from eventrank.core.config import settings
from eventrank.utils.datetime import as_utc, utcnow


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.local_timezone)


def local_today(now: datetime | None = None) -> date:
    """Calendar date in the local timezone (not the UTC date)."""
    return as_utc(now or utcnow()).astimezone(local_zone()).date()


def start_of_local_day(day: date) -> datetime:
    """Local midnight for ``day`` as an aware UTC datetime; DST-safe."""
    return datetime.combine(day, time.min, tzinfo=local_zone()).astimezone(timezone.utc)


def local_day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) UTC range covering one local calendar day."""
    return start_of_local_day(day), start_of_local_day(day + timedelta(days=1))


def local_date_of(value: datetime) -> date:
    return as_utc(value).astimezone(local_zone()).date()
