"""Analytics engine for HydroLog.

Completion ratio, weekly/monthly period stats and streaks, computed from the
finalized history. Today's in-progress record never counts toward a streak.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Any

from hydrolog.dates import start_of_month, start_of_week, to_date
from hydrolog.models import AnalyticsSummary, HistorySummary, HydrationState, PeriodStats


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


# ── Completion ────────────────────────────────────────────────


def completion_ratio(intake: int, target: int) -> float:
    """Fraction of *target* reached, capped at 1. Not rounded."""
    if target <= 0:
        return 0.0
    return min(1.0, intake / target)


def completion_percent(intake: int, target: int) -> int:
    """Presentation value: the ratio as a whole percentage."""
    return _round_half_up(completion_ratio(intake, target) * 100)


def is_goal_completed(intake: int, target: int) -> bool:
    return intake >= target


def remaining_ml(intake: int, target: int) -> int:
    return max(0, target - intake)


# ── Periods ───────────────────────────────────────────────────


def period_stats(history: Iterable[HistorySummary], period_start: Any) -> PeriodStats:
    """Aggregate summaries dated on or after *period_start*.

    The caller decides where the period starts (week, month, ...).
    """
    start = to_date(period_start)
    in_period = [s for s in history if s.date >= start]
    if not in_period:
        return PeriodStats()

    total = sum(s.total_intake_ml for s in in_period)
    done = sum(1 for s in in_period if s.completed)
    count = len(in_period)
    return PeriodStats(
        average=_round_half_up(total / count),
        total=total,
        days_completed=done,
        days_total=count,
        completion_rate=_round_half_up(100 * done / count),
    )


def rolling_average(history: Iterable[HistorySummary], days: int, today: Any) -> int:
    """Mean daily intake over the summaries of the last *days* days."""
    cutoff = to_date(today) - timedelta(days=days)
    recent = [s.total_intake_ml for s in history if s.date >= cutoff]
    if not recent:
        return 0
    return _round_half_up(sum(recent) / len(recent))


# ── Streaks ───────────────────────────────────────────────────


def current_streak(history: Iterable[HistorySummary]) -> int:
    """Consecutive completed days counting back from the most recent summary.

    A non-completed day or a missing date ends the streak.
    """
    streak = 0
    previous: date | None = None
    for summary in sorted(history, key=lambda s: s.date, reverse=True):
        if not summary.completed:
            break
        if previous is not None and (previous - summary.date).days != 1:
            break
        streak += 1
        previous = summary.date
    return streak


def streak_runs(history: Iterable[HistorySummary]) -> list[dict[str, Any]]:
    """All runs of consecutive completed days, oldest first."""
    runs: list[dict[str, Any]] = []
    start: date | None = None
    end: date | None = None
    length = 0
    for summary in sorted(history, key=lambda s: s.date):
        contiguous = end is not None and (summary.date - end).days == 1
        if summary.completed and (length == 0 or contiguous):
            if length == 0:
                start = summary.date
            end = summary.date
            length += 1
            continue
        if length > 0:
            runs.append({"start": start.isoformat(), "end": end.isoformat(), "length": length})
        if summary.completed:
            start = end = summary.date
            length = 1
        else:
            start = end = None
            length = 0
    if length > 0:
        runs.append({"start": start.isoformat(), "end": end.isoformat(), "length": length})
    return runs


def longest_streak(history: Iterable[HistorySummary]) -> int:
    return max((r["length"] for r in streak_runs(history)), default=0)


# ── Summary ───────────────────────────────────────────────────


def compute_summary(state: HydrationState, today: Any, week_start: str = "mon") -> AnalyticsSummary:
    """Everything the stats and home views display, in one snapshot."""
    day = to_date(today)
    intake = state.today.intake_ml
    target = state.settings.daily_target_ml
    history = state.history_sorted()

    return AnalyticsSummary(
        date=day.isoformat(),
        intake_ml=intake,
        target_ml=target,
        completion_ratio=completion_ratio(intake, target),
        completion_percent=completion_percent(intake, target),
        remaining_ml=remaining_ml(intake, target),
        goal_completed=is_goal_completed(intake, target),
        entries_count=len(state.today.entries),
        current_streak=current_streak(history),
        longest_streak=longest_streak(history),
        weekly=period_stats(history, start_of_week(day, week_start)),
        monthly=period_stats(history, start_of_month(day)),
        rolling_7day_avg=rolling_average(history, 7, day),
    )
