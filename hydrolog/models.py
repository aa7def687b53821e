"""Typed dataclasses for the HydroLog data model.

All models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults. Values that cannot be
interpreted at all raise StateCorruptedError.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime, timezone
from typing import Any

from hydrolog.dates import to_date
from hydrolog.errors import StateCorruptedError


DEFAULT_DAILY_TARGET_ML = 2000
DEFAULT_REMINDER_INTERVAL_MINUTES = 60
DEFAULT_WAKE_START = 7
DEFAULT_WAKE_END = 22

ENTRY_KINDS = ("quick", "custom")


# ── Helpers ───────────────────────────────────────────────────


def _day(value: Any, what: str) -> date:
    try:
        return to_date(value)
    except (TypeError, ValueError) as e:
        raise StateCorruptedError(f"Invalid {what}: {value!r}") from e


def _int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise StateCorruptedError(f"Invalid {what}: {value!r}")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    raise StateCorruptedError(f"Invalid {what}: {value!r}")


def _bool(value: Any, what: str, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise StateCorruptedError(f"Invalid {what}: {value!r}")


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class _Unset:
    """Marker for a settings field the caller did not touch."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


# ── Settings ──────────────────────────────────────────────────


@dataclass(frozen=True)
class WakeHours:
    """Hour range in which reminders may fire. start > end wraps past midnight."""

    start: int = DEFAULT_WAKE_START
    end: int = DEFAULT_WAKE_END

    @classmethod
    def from_value(cls, value: Any) -> WakeHours:
        """Build from a WakeHours, a {start, end} mapping or a (start, end) pair."""
        if isinstance(value, WakeHours):
            return value
        if isinstance(value, dict):
            return cls(start=value.get("start"), end=value.get("end"))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(start=value[0], end=value[1])
        raise ValueError(f"Invalid wake hours: {value!r}")

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> WakeHours:
        if not d or not isinstance(d, dict):
            return cls()
        start = _int(d.get("start", DEFAULT_WAKE_START), "wake start hour")
        end = _int(d.get("end", DEFAULT_WAKE_END), "wake end hour")
        return cls(start=_clamp(start, 0, 23), end=_clamp(end, 1, 24))

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start, "end": self.end}

    @property
    def wraps(self) -> bool:
        return self.start >= self.end


@dataclass(frozen=True)
class Settings:
    daily_target_ml: int = DEFAULT_DAILY_TARGET_ML
    reminder_enabled: bool = True
    reminder_interval_minutes: int = DEFAULT_REMINDER_INTERVAL_MINUTES
    sound_enabled: bool = True
    vibration_enabled: bool = True
    wake_hours: WakeHours = field(default_factory=WakeHours)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        """Load settings, clamping out-of-range numbers back into their limits.

        Accepts the older ``dailyTarget`` / ``reminderInterval`` keys too.
        """
        if not d or not isinstance(d, dict):
            return cls()
        target = _int(
            d.get("dailyTargetMl", d.get("dailyTarget", DEFAULT_DAILY_TARGET_ML)),
            "daily target",
        )
        target = _clamp(int(round(target / 100.0)) * 100, 1000, 4000)
        interval = _int(
            d.get(
                "reminderIntervalMinutes",
                d.get("reminderInterval", DEFAULT_REMINDER_INTERVAL_MINUTES),
            ),
            "reminder interval",
        )
        return cls(
            daily_target_ml=target,
            reminder_enabled=_bool(d.get("reminderEnabled"), "reminderEnabled"),
            reminder_interval_minutes=_clamp(interval, 15, 240),
            sound_enabled=_bool(d.get("soundEnabled"), "soundEnabled"),
            vibration_enabled=_bool(d.get("vibrationEnabled"), "vibrationEnabled"),
            wake_hours=WakeHours.from_dict(d.get("wakeHours") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "dailyTargetMl": self.daily_target_ml,
            "reminderEnabled": self.reminder_enabled,
            "reminderIntervalMinutes": self.reminder_interval_minutes,
            "soundEnabled": self.sound_enabled,
            "vibrationEnabled": self.vibration_enabled,
            "wakeHours": self.wake_hours.to_dict(),
        }

    def apply(self, update: SettingsUpdate) -> Settings:
        """Return a copy with every present field of *update* applied."""
        changes = update.present_fields()
        for name in ("daily_target_ml", "reminder_interval_minutes"):
            if name in changes:
                changes[name] = int(changes[name])
        if "wake_hours" in changes:
            changes["wake_hours"] = WakeHours.from_value(changes["wake_hours"])
        return replace(self, **changes)


# camelCase (JSON) -> snake_case (Python) for partial updates
SETTINGS_KEYS = {
    "dailyTargetMl": "daily_target_ml",
    "reminderEnabled": "reminder_enabled",
    "reminderIntervalMinutes": "reminder_interval_minutes",
    "soundEnabled": "sound_enabled",
    "vibrationEnabled": "vibration_enabled",
    "wakeHours": "wake_hours",
}


@dataclass(frozen=True)
class SettingsUpdate:
    """A partial settings change.

    Fields left at UNSET were not touched by the caller. That is different
    from a field explicitly set to its current value.
    """

    daily_target_ml: Any = UNSET
    reminder_enabled: Any = UNSET
    reminder_interval_minutes: Any = UNSET
    sound_enabled: Any = UNSET
    vibration_enabled: Any = UNSET
    wake_hours: Any = UNSET

    @classmethod
    def from_mapping(cls, d: dict[str, Any]) -> SettingsUpdate:
        """Build from camelCase or snake_case keys. Unknown keys raise ValueError."""
        kwargs: dict[str, Any] = {}
        allowed = set(SETTINGS_KEYS.values())
        for key, value in d.items():
            name = SETTINGS_KEYS.get(key, key)
            if name not in allowed:
                raise ValueError(f"Unknown settings field: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    def present_fields(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.present_fields()


# ── Daily log ─────────────────────────────────────────────────


@dataclass(frozen=True)
class LogEntry:
    id: str
    amount_ml: int
    timestamp_ms: int
    kind: str = "custom"  # quick, custom

    @classmethod
    def create(cls, amount_ml: int, timestamp_ms: int, kind: str = "custom") -> LogEntry:
        return cls(id=uuid.uuid4().hex, amount_ml=int(amount_ml), timestamp_ms=timestamp_ms, kind=kind)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> LogEntry:
        if not isinstance(d, dict) or not d.get("id"):
            raise StateCorruptedError(f"Invalid log entry: {d!r}")
        amount = _int(d.get("amountMl", d.get("amount")), "entry amount")
        if amount <= 0:
            raise StateCorruptedError(f"Invalid entry amount: {amount}")
        if "timestampMs" in d:
            ts = _int(d["timestampMs"], "entry timestamp")
        else:
            # Older data stored an ISO timestamp string
            try:
                dt = datetime.fromisoformat(str(d.get("timestamp", "")).replace("Z", "+00:00"))
            except ValueError as e:
                raise StateCorruptedError(f"Invalid entry timestamp: {d.get('timestamp')!r}") from e
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            ts = int(dt.timestamp() * 1000)
        kind = str(d.get("kind", "custom"))
        return cls(
            id=str(d["id"]),
            amount_ml=amount,
            timestamp_ms=ts,
            kind=kind if kind in ENTRY_KINDS else "custom",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amountMl": self.amount_ml,
            "timestampMs": self.timestamp_ms,
            "kind": self.kind,
        }


@dataclass
class DailyRecord:
    """Today's in-progress log. intake_ml is always derived from the entries."""

    date: date
    entries: list[LogEntry] = field(default_factory=list)

    @property
    def intake_ml(self) -> int:
        return sum(e.amount_ml for e in self.entries)

    def entries_by_time(self) -> list[LogEntry]:
        return sorted(self.entries, key=lambda e: e.timestamp_ms)

    def find(self, entry_id: str) -> LogEntry | None:
        for e in self.entries:
            if e.id == entry_id:
                return e
        return None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DailyRecord:
        if not isinstance(d, dict):
            raise StateCorruptedError(f"Invalid daily record: {d!r}")
        entries = d.get("entries", d.get("logs")) or []
        if not isinstance(entries, list):
            raise StateCorruptedError("Daily record entries must be a list")
        # stored intakeMl is ignored; it is recomputed from the entries
        return cls(
            date=_day(d.get("date"), "record date"),
            entries=[LogEntry.from_dict(e) for e in entries],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "intakeMl": self.intake_ml,
            "entries": [e.to_dict() for e in self.entries],
        }


# ── History ───────────────────────────────────────────────────


@dataclass(frozen=True)
class HistorySummary:
    """Finalized total for one past day."""

    date: date
    total_intake_ml: int
    target_ml: int

    @property
    def completed(self) -> bool:
        return self.total_intake_ml >= self.target_ml

    @classmethod
    def from_record(cls, record: DailyRecord, target_ml: int) -> HistorySummary:
        return cls(date=record.date, total_intake_ml=record.intake_ml, target_ml=target_ml)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HistorySummary:
        if not isinstance(d, dict):
            raise StateCorruptedError(f"Invalid history entry: {d!r}")
        return cls(
            date=_day(d.get("date"), "history date"),
            total_intake_ml=max(0, _int(d.get("totalIntakeMl", d.get("totalIntake", 0)), "history intake")),
            target_ml=max(0, _int(d.get("targetMl", d.get("target", 0)), "history target")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "totalIntakeMl": self.total_intake_ml,
            "targetMl": self.target_ml,
            "completed": self.completed,
        }


# ── State ─────────────────────────────────────────────────────


@dataclass
class HydrationState:
    settings: Settings
    today: DailyRecord
    history: list[HistorySummary] = field(default_factory=list)

    @classmethod
    def fresh(cls, day: date, settings: Settings | None = None) -> HydrationState:
        return cls(settings=settings or Settings(), today=DailyRecord(date=day))

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HydrationState:
        if not isinstance(d, dict):
            raise StateCorruptedError("State root must be a mapping")
        if "today" not in d:
            raise StateCorruptedError("State has no today record")
        history = d.get("history") or []
        if not isinstance(history, list):
            raise StateCorruptedError("History must be a list")
        # De-dup by date, last one wins
        by_day = {s.date: s for s in (HistorySummary.from_dict(h) for h in history)}
        return cls(
            settings=Settings.from_dict(d.get("settings") or {}),
            today=DailyRecord.from_dict(d["today"]),
            history=sorted(by_day.values(), key=lambda s: s.date),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "settings": self.settings.to_dict(),
            "today": self.today.to_dict(),
            "history": [s.to_dict() for s in self.history_sorted()],
        }

    def history_sorted(self, descending: bool = False) -> list[HistorySummary]:
        return sorted(self.history, key=lambda s: s.date, reverse=descending)


# ── Analytics ─────────────────────────────────────────────────


@dataclass(frozen=True)
class PeriodStats:
    average: int = 0
    total: int = 0
    days_completed: int = 0
    days_total: int = 0
    completion_rate: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "average": self.average,
            "total": self.total,
            "daysCompleted": self.days_completed,
            "daysTotal": self.days_total,
            "completionRate": self.completion_rate,
        }


@dataclass
class AnalyticsSummary:
    date: str = ""
    intake_ml: int = 0
    target_ml: int = 0
    completion_ratio: float = 0.0
    completion_percent: int = 0
    remaining_ml: int = 0
    goal_completed: bool = False
    entries_count: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    weekly: PeriodStats = field(default_factory=PeriodStats)
    monthly: PeriodStats = field(default_factory=PeriodStats)
    rolling_7day_avg: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "intakeMl": self.intake_ml,
            "targetMl": self.target_ml,
            "completionRatio": self.completion_ratio,
            "completionPercent": self.completion_percent,
            "remainingMl": self.remaining_ml,
            "goalCompleted": self.goal_completed,
            "entriesCount": self.entries_count,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "weekly": self.weekly.to_dict(),
            "monthly": self.monthly.to_dict(),
            "rolling7dayAvg": self.rolling_7day_avg,
        }
