"""Calendar-day helpers, wake-window checks and the local clock for HydroLog.

Nothing in the engine reads the clock on its own: callers pass ``now`` in.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DAY_NAMES = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


def to_date(value: Any) -> date:
    """Coerce a date, datetime or 'YYYY-MM-DD' string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Cannot interpret {value!r} as a calendar day")


def is_same_calendar_day(a: Any, b: Any) -> bool:
    """Compare year/month/day only. Time of day is ignored."""
    return to_date(a) == to_date(b)


def days_elapsed(last_date: Any, now: Any) -> int:
    """Number of calendar-day boundaries crossed from *last_date* to *now*.

    0 means same day, 1 means one rollover is due, N > 1 means N - 1 days
    went by without the app running. Negative if the clock moved backwards.
    """
    return (to_date(now) - to_date(last_date)).days


def is_hour_active(hour: int, start: int, end: int) -> bool:
    """Whether *hour* falls inside the wake window [start, end).

    start < end is a same-day window. start >= end wraps past midnight,
    e.g. 22 -> 6 covers 22:00-05:59.
    """
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour out of range: {hour}")
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


# ── Period anchors ────────────────────────────────────────────


def start_of_week(day: Any, week_start: str = "mon") -> date:
    d = to_date(day)
    try:
        first = DAY_NAMES.index(week_start.lower()[:3])
    except ValueError:
        first = 0
    return d - timedelta(days=(d.weekday() - first) % 7)


def start_of_month(day: Any) -> date:
    return to_date(day).replace(day=1)


# ── Clock ─────────────────────────────────────────────────────


def get_timezone(name: str | None) -> ZoneInfo:
    """Resolve an IANA zone name, defaulting to UTC."""
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, falling back to UTC", name)
    return ZoneInfo("UTC")


def now_local(tz: ZoneInfo | None = None) -> datetime:
    return datetime.now(tz or ZoneInfo("UTC"))


def today_local(tz: ZoneInfo | None = None) -> date:
    return now_local(tz).date()


def timestamp_ms(dt: datetime) -> int:
    """Milliseconds since the epoch. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo("UTC"))
    return int(dt.timestamp() * 1000)
