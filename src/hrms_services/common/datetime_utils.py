from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from ..core.constants import ABSENCE_MARK_HOUR_UTC


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current time as an aware UTC datetime.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes coming back from the store as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = str(value).replace("Z", "+00:00")
    return ensure_utc(datetime.fromisoformat(text))


def local_midnight(now: datetime, tz=None) -> datetime:
    """Start of `now`'s day in local time (or `tz`), returned in UTC."""
    local = now.astimezone(tz)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)


def day_bounds(start: date, end: Optional[date] = None) -> Tuple[datetime, datetime]:
    """Inclusive UTC range `[start 00:00:00, end 23:59:59]`."""
    end = end or start
    return (
        datetime.combine(start, time(0, 0, 0), tzinfo=timezone.utc),
        datetime.combine(end, time(23, 59, 59), tzinfo=timezone.utc),
    )


def absence_mark_time(work_date: Optional[date], now: datetime) -> datetime:
    """09:00 UTC of `work_date`, or `now` when no date is given."""
    if work_date is None:
        return now
    return datetime.combine(work_date, time(ABSENCE_MARK_HOUR_UTC, 0), tzinfo=timezone.utc)


def split_duration(delta: timedelta) -> Tuple[int, int, int]:
    total = max(int(delta.total_seconds()), 0)
    return total // 3600, (total % 3600) // 60, total % 60
