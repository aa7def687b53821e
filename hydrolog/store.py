"""The stateful core of HydroLog: one owner object for settings, today's log
and the history, plus every operation that changes them.

Day rollover is lazy. Every operation first checks whether the calendar day
has changed since today's record was started and archives it if so; there is
no background timer. An app left open across midnight rolls over on its next
call.

Validation rejections are returned as OperationResult, never raised. Failures
of the persistence collaborator surface as PersistenceError.
"""

from __future__ import annotations

import copy
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from hydrolog.analytics import compute_summary
from hydrolog.config import AppConfig
from hydrolog.dates import days_elapsed, now_local, timestamp_ms, to_date
from hydrolog.errors import PersistenceError, Reason
from hydrolog.models import (
    ENTRY_KINDS,
    AnalyticsSummary,
    DailyRecord,
    HistorySummary,
    HydrationState,
    LogEntry,
    Settings,
    SettingsUpdate,
)
from hydrolog.reminders import ReminderDecision, ReminderSettings, decide_reminder
from hydrolog.storage import Persistence
from hydrolog.validation import (
    ValidationResult,
    validate_custom_amount,
    validate_quick_amount,
    validate_settings_update,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
HookRunner = Callable[[str, dict[str, Any]], Any]


@dataclass(frozen=True)
class OperationResult:
    ok: bool
    reason: Reason | None = None
    message: str = ""
    field: str | None = None
    entry: LogEntry | None = None
    state: HydrationState | None = None

    @classmethod
    def success(cls, entry: LogEntry | None = None, state: HydrationState | None = None) -> OperationResult:
        return cls(ok=True, entry=entry, state=state)

    @classmethod
    def rejected(cls, validation: ValidationResult, state: HydrationState | None = None) -> OperationResult:
        return cls(
            ok=False,
            reason=validation.reason,
            message=validation.message,
            field=validation.field,
            state=state,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"ok": self.ok}
        if self.reason is not None:
            d["reason"] = self.reason.value
            d["message"] = self.message
        if self.field:
            d["field"] = self.field
        if self.entry is not None:
            d["entry"] = self.entry.to_dict()
        return d


class HydrationStore:
    """Owns the hydration state. Pass it to whoever needs it; it is not a global."""

    def __init__(
        self,
        state: HydrationState | None = None,
        config: AppConfig | None = None,
        persistence: Persistence | None = None,
        clock: Clock | None = None,
        hooks: HookRunner | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self._clock = clock or (lambda: now_local(self.config.tz))
        self._persistence = persistence
        self._hooks = hooks
        if state is None:
            state = HydrationState.fresh(to_date(self._clock()))
        self._state = state

    @classmethod
    def open(
        cls,
        persistence: Persistence,
        config: AppConfig | None = None,
        clock: Clock | None = None,
        hooks: HookRunner | None = None,
    ) -> HydrationStore:
        """Seed a store from the collaborator's saved state, or defaults if none."""
        state = persistence.load()
        if state is None:
            logger.info("No saved state, starting fresh")
        return cls(state=state, config=config, persistence=persistence, clock=clock, hooks=hooks)

    # ── Read-only snapshots ───────────────────────────────────

    @property
    def settings(self) -> Settings:
        return self._state.settings

    @property
    def today(self) -> DailyRecord:
        return copy.deepcopy(self._state.today)

    @property
    def history(self) -> list[HistorySummary]:
        return self._state.history_sorted()

    def snapshot(self) -> HydrationState:
        return copy.deepcopy(self._state)

    def reminder_settings(self) -> ReminderSettings:
        return ReminderSettings.from_settings(self._state.settings)

    def summary(self, now: datetime | None = None) -> AnalyticsSummary:
        now = self._now(now)
        self.roll_day_over(now)
        return compute_summary(self._state, now, self.config.week_start)

    def quick_add_options(self, now: datetime | None = None) -> list[dict[str, Any]]:
        self.roll_day_over(now)
        intake = self._state.today.intake_ml
        return [
            {
                "amount": amount,
                "label": f"{amount}ml",
                "disabled": intake + amount > self.config.daily_max_ml,
            }
            for amount in self.config.quick_amounts
        ]

    def reminder_decision(
        self,
        now: datetime | None = None,
        last_reminder_at: datetime | None = None,
        rng: random.Random | None = None,
    ) -> ReminderDecision:
        now = self._now(now)
        self.roll_day_over(now)
        return decide_reminder(
            self.reminder_settings(),
            self._state.today.intake_ml,
            self._state.settings.daily_target_ml,
            now,
            last_reminder_at=last_reminder_at,
            rng=rng,
        )

    # ── Operations ────────────────────────────────────────────

    def add_entry(self, amount: Any, kind: str = "custom", now: datetime | None = None) -> OperationResult:
        """Log *amount* ml for today. *kind* is "quick" or "custom"."""
        if kind not in ENTRY_KINDS:
            raise ValueError(f"Unknown entry kind: {kind!r}")
        now = self._now(now)
        self.roll_day_over(now)

        intake = self._state.today.intake_ml
        if kind == "quick":
            check = validate_quick_amount(
                amount, self.config.quick_amounts, intake, self.config.daily_max_ml
            )
        else:
            check = validate_custom_amount(amount, intake, self.config.daily_max_ml)
        if not check.ok:
            logger.debug("Rejected %s entry of %r: %s", kind, amount, check.reason)
            return OperationResult.rejected(check, state=self.snapshot())

        # Validated amounts are integral; 250.0 is stored as 250
        entry = LogEntry.create(int(amount), timestamp_ms(now), kind)
        self._state.today.entries.append(entry)
        logger.info("Added %dml (%s), intake now %dml", entry.amount_ml, kind, self._state.today.intake_ml)
        self._persist()

        target = self._state.settings.daily_target_ml
        if intake < target <= self._state.today.intake_ml:
            self._fire("on_goal_reached", {
                "date": self._state.today.date.isoformat(),
                "intakeMl": self._state.today.intake_ml,
                "targetMl": target,
            })
        return OperationResult.success(entry, state=self.snapshot())

    def remove_entry(self, entry_id: str, now: datetime | None = None) -> OperationResult:
        """Remove one of today's entries. History cannot be edited."""
        self.roll_day_over(now)
        entry = self._state.today.find(entry_id)
        if entry is None:
            logger.debug("Entry %r not found in today's log", entry_id)
            return OperationResult.rejected(
                ValidationResult.reject(Reason.NOT_FOUND, "Log entry not found"),
                state=self.snapshot(),
            )
        self._state.today.entries = [e for e in self._state.today.entries if e.id != entry_id]
        logger.info("Removed %dml entry, intake now %dml", entry.amount_ml, self._state.today.intake_ml)
        self._persist()
        return OperationResult.success(entry, state=self.snapshot())

    def update_settings(
        self, update: SettingsUpdate | dict[str, Any], now: datetime | None = None
    ) -> OperationResult:
        """Apply a partial settings change, all fields or none."""
        if not isinstance(update, SettingsUpdate):
            update = SettingsUpdate.from_mapping(update)
        self.roll_day_over(now)

        check = validate_settings_update(update)
        if not check.ok:
            logger.debug("Rejected settings update (%s): %s", check.field, check.reason)
            return OperationResult.rejected(check, state=self.snapshot())
        if update.is_empty():
            return OperationResult.success(state=self.snapshot())

        self._state.settings = self._state.settings.apply(update)
        logger.info("Updated settings: %s", ", ".join(update.present_fields()))
        self._persist()
        self._fire("on_settings_changed", self.reminder_settings().to_dict() | {
            "dailyTargetMl": self._state.settings.daily_target_ml,
        })
        return OperationResult.success(state=self.snapshot())

    def reset_all(self, now: datetime | None = None) -> OperationResult:
        """Wipe history and today's log and restore default settings."""
        now = self._now(now)
        self._state = HydrationState.fresh(to_date(now))
        logger.info("Reset all data")
        self._persist()
        self._fire("post_reset", {"date": self._state.today.date.isoformat()})
        return OperationResult.success(state=self.snapshot())

    def roll_day_over(self, now: datetime | None = None) -> bool:
        """Archive today's record if the calendar day has changed. Idempotent.

        Returns True if a rollover happened.
        """
        now = self._now(now)
        elapsed = days_elapsed(self._state.today.date, now)
        if elapsed < 0:
            logger.warning(
                "Clock is behind today's record (%s > %s); not rolling over",
                self._state.today.date, to_date(now),
            )
            return False
        if elapsed == 0:
            return False

        archived = HistorySummary.from_record(self._state.today, self._state.settings.daily_target_ml)
        by_day = {s.date: s for s in self._state.history}
        by_day[archived.date] = archived
        history = sorted(by_day.values(), key=lambda s: s.date)

        retention = self.config.history_retention_days
        if retention is not None:
            cutoff = to_date(now) - timedelta(days=retention)
            history = [s for s in history if s.date >= cutoff]

        self._state.history = history
        self._state.today = DailyRecord(date=to_date(now))
        logger.info(
            "Rolled over %s (%dml of %dml, %s); %d day(s) elapsed",
            archived.date, archived.total_intake_ml, archived.target_ml,
            "completed" if archived.completed else "not completed", elapsed,
        )
        self._persist()
        self._fire("post_rollover", archived.to_dict() | {"newDate": self._state.today.date.isoformat()})
        return True

    def replace_state(self, state: HydrationState) -> OperationResult:
        """Swap in a whole state, e.g. one read from a backup."""
        self._state = copy.deepcopy(state)
        logger.info("Replaced state (%d history days)", len(state.history))
        self._persist()
        return OperationResult.success(state=self.snapshot())

    # ── Internals ─────────────────────────────────────────────

    def _now(self, now: datetime | None) -> datetime:
        return now if now is not None else self._clock()

    def _persist(self) -> None:
        if self._persistence is None:
            return
        try:
            self._persistence.save(self._state)
        except PersistenceError:
            logger.error("Saving state failed", exc_info=True)
            raise
        except Exception as e:
            logger.error("Saving state failed", exc_info=True)
            raise PersistenceError(f"Saving state failed: {e}") from e

    def _fire(self, hook_point: str, context: dict[str, Any]) -> None:
        if self._hooks is None:
            return
        try:
            self._hooks(hook_point, context)
        except Exception:
            # Hooks are best-effort and never change the operation's outcome
            logger.warning("Hook %s failed", hook_point, exc_info=True)
