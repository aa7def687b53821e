"""Tests for hydrolog/dates.py: Calendar days and wake windows."""

from datetime import date, datetime

import pytest

from conftest import NOW, UTC, at
from hydrolog.dates import (
    days_elapsed,
    get_timezone,
    is_hour_active,
    is_same_calendar_day,
    start_of_month,
    start_of_week,
    now_local,
    timestamp_ms,
    to_date,
    today_local,
)


def test_to_date_accepts_common_shapes():
    assert to_date("2026-02-11") == date(2026, 2, 11)
    assert to_date("2026-02-11T23:59:59Z") == date(2026, 2, 11)
    assert to_date(NOW) == date(2026, 2, 11)
    assert to_date(date(2026, 2, 11)) == date(2026, 2, 11)
    with pytest.raises(TypeError):
        to_date(20260211)


def test_same_calendar_day_ignores_time():
    assert is_same_calendar_day(at("2026-02-11", 0, 1), at("2026-02-11", 23, 59))
    assert not is_same_calendar_day(at("2026-02-11", 23, 59), at("2026-02-12", 0, 0))


def test_days_elapsed():
    assert days_elapsed("2026-02-11", NOW) == 0
    assert days_elapsed("2026-02-10", NOW) == 1
    assert days_elapsed("2026-02-07", NOW) == 4
    # Across a month boundary
    assert days_elapsed("2026-01-31", at("2026-02-01", 0, 0)) == 1


def test_days_elapsed_negative_when_clock_moves_back():
    assert days_elapsed("2026-02-12", NOW) == -1


def test_hour_active_same_day_window():
    assert is_hour_active(7, 7, 22)
    assert is_hour_active(21, 7, 22)
    assert not is_hour_active(22, 7, 22)
    assert not is_hour_active(6, 7, 22)


def test_hour_active_midnight_wrap():
    assert is_hour_active(23, 22, 6)
    assert is_hour_active(0, 22, 6)
    assert is_hour_active(5, 22, 6)
    assert not is_hour_active(6, 22, 6)
    assert not is_hour_active(10, 22, 6)


def test_hour_active_rejects_bad_hour():
    with pytest.raises(ValueError):
        is_hour_active(24, 7, 22)
    with pytest.raises(ValueError):
        is_hour_active(-1, 7, 22)


def test_start_of_week():
    assert start_of_week(NOW) == date(2026, 2, 9)
    assert start_of_week(NOW, "sun") == date(2026, 2, 8)
    # A Monday is its own week start
    assert start_of_week("2026-02-09") == date(2026, 2, 9)
    # Unknown names fall back to Monday
    assert start_of_week(NOW, "someday") == date(2026, 2, 9)


def test_start_of_month():
    assert start_of_month(NOW) == date(2026, 2, 1)


def test_get_timezone_falls_back_to_utc():
    assert get_timezone("Europe/Berlin").key == "Europe/Berlin"
    assert get_timezone("Not/AZone").key == "UTC"
    assert get_timezone(None).key == "UTC"


def test_timestamp_ms_treats_naive_as_utc():
    naive = datetime(2026, 2, 11, 8, 0)
    assert timestamp_ms(naive) == timestamp_ms(naive.replace(tzinfo=UTC))
    assert timestamp_ms(at("2026-02-11", 8)) == 1770796800000


def test_today_local_follows_timezone():
    tz = get_timezone("Pacific/Kiritimati")
    before = now_local(tz).date()
    today = today_local(tz)
    assert today in (before, now_local(tz).date())
    # Defaults to UTC
    before = now_local(UTC).date()
    assert today_local() in (before, now_local(UTC).date())
