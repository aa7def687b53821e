"""Tests for hydrolog/analytics.py: Completion, period stats and streaks."""

from datetime import date

from conftest import NOW, summaries
from hydrolog.analytics import (
    completion_percent,
    completion_ratio,
    compute_summary,
    current_streak,
    is_goal_completed,
    longest_streak,
    period_stats,
    remaining_ml,
    rolling_average,
    streak_runs,
)
from hydrolog.models import DailyRecord, HydrationState, LogEntry, PeriodStats, Settings


def test_completion_ratio():
    assert completion_ratio(750, 2000) == 0.375
    assert completion_ratio(2500, 2000) == 1.0
    assert completion_ratio(500, 0) == 0.0


def test_completion_percent_rounds_half_up():
    assert completion_percent(750, 2000) == 38
    assert completion_percent(1, 8) == 13
    assert completion_percent(3000, 2000) == 100


def test_goal_completed_is_literal_target():
    assert is_goal_completed(2000, 2000)
    assert not is_goal_completed(1999, 2000)
    # 80% is not enough
    assert not is_goal_completed(1600, 2000)


def test_remaining():
    assert remaining_ml(750, 2000) == 1250
    assert remaining_ml(2500, 2000) == 0


def test_period_stats_empty():
    assert period_stats([], date(2026, 2, 9)) == PeriodStats()


def test_period_stats_filters_by_start():
    history = summaries(
        ("2026-02-05", 3000, 2000),
        ("2026-02-09", 2100, 2000),
        ("2026-02-10", 1500, 2000),
    )
    stats = period_stats(history, "2026-02-09")
    assert stats.total == 3600
    assert stats.average == 1800
    assert stats.days_completed == 1
    assert stats.days_total == 2
    assert stats.completion_rate == 50


def test_period_stats_rounding():
    history = summaries(("2026-02-09", 1001, 2000), ("2026-02-10", 1002, 2000))
    assert period_stats(history, "2026-02-01").average == 1002

    history = summaries(
        ("2026-02-08", 2000, 2000),
        ("2026-02-09", 1000, 2000),
        ("2026-02-10", 1000, 2000),
    )
    assert period_stats(history, "2026-02-01").completion_rate == 33


def test_rolling_average():
    history = summaries(
        ("2026-01-20", 5000, 2000),
        ("2026-02-09", 2000, 2000),
        ("2026-02-10", 1000, 2000),
    )
    assert rolling_average(history, 7, NOW) == 1500
    assert rolling_average([], 7, NOW) == 0


def test_current_streak_most_recent_not_completed():
    history = summaries(
        ("2026-02-01", 2000, 2000),
        ("2026-02-02", 2000, 2000),
        ("2026-02-03", 100, 2000),
    )
    assert current_streak(history) == 0
    assert current_streak(history[:2]) == 2


def test_current_streak_ignores_input_order():
    history = summaries(
        ("2026-02-03", 2000, 2000),
        ("2026-02-01", 2000, 2000),
        ("2026-02-02", 2000, 2000),
    )
    assert current_streak(history) == 3


def test_current_streak_gap_breaks_chain():
    history = summaries(
        ("2026-02-01", 2000, 2000),
        ("2026-02-03", 2000, 2000),
    )
    assert current_streak(history) == 1


def test_current_streak_empty():
    assert current_streak([]) == 0


def test_streak_uses_frozen_target():
    """A day counts against the target it had, not today's."""
    history = summaries(("2026-02-09", 1500, 1500), ("2026-02-10", 2500, 2500))
    assert current_streak(history) == 2


def test_streak_runs_and_longest():
    history = summaries(
        ("2026-02-01", 2000, 2000),
        ("2026-02-02", 2000, 2000),
        ("2026-02-03", 2000, 2000),
        ("2026-02-04", 0, 2000),
        ("2026-02-05", 2000, 2000),
        ("2026-02-07", 2000, 2000),
        ("2026-02-08", 2000, 2000),
    )
    runs = streak_runs(history)
    assert runs == [
        {"start": "2026-02-01", "end": "2026-02-03", "length": 3},
        {"start": "2026-02-05", "end": "2026-02-05", "length": 1},
        {"start": "2026-02-07", "end": "2026-02-08", "length": 2},
    ]
    assert longest_streak(history) == 3
    assert longest_streak([]) == 0


def test_compute_summary():
    state = HydrationState(
        settings=Settings(daily_target_ml=2000),
        today=DailyRecord(
            date=date(2026, 2, 11),
            entries=[LogEntry(id="a", amount_ml=750, timestamp_ms=0, kind="custom")],
        ),
        history=summaries(
            ("2026-02-08", 2100, 2000),
            ("2026-02-09", 2000, 2000),
            ("2026-02-10", 2200, 2000),
        ),
    )
    s = compute_summary(state, NOW)
    assert s.date == "2026-02-11"
    assert s.intake_ml == 750
    assert s.completion_ratio == 0.375
    assert s.completion_percent == 38
    assert s.remaining_ml == 1250
    assert s.goal_completed is False
    assert s.entries_count == 1
    # Today does not count toward the streak
    assert s.current_streak == 3
    assert s.longest_streak == 3
    # Week starts Monday 02-09
    assert s.weekly.days_total == 2
    assert s.monthly.days_total == 3

    d = s.to_dict()
    assert d["completionPercent"] == 38
    assert d["weekly"]["daysCompleted"] == 2
