"""Tests for hydrolog/models.py: Dataclass serialization and legacy keys."""

from datetime import date

import pytest

from hydrolog.errors import StateCorruptedError
from hydrolog.models import (
    UNSET,
    DailyRecord,
    HistorySummary,
    HydrationState,
    LogEntry,
    Settings,
    SettingsUpdate,
    WakeHours,
)


def test_settings_defaults():
    s = Settings.from_dict({})
    assert s.daily_target_ml == 2000
    assert s.reminder_interval_minutes == 60
    assert s.wake_hours == WakeHours(7, 22)
    assert s.reminder_enabled and s.sound_enabled and s.vibration_enabled


def test_settings_roundtrip():
    s = Settings(daily_target_ml=2500, sound_enabled=False, wake_hours=WakeHours(22, 6))
    assert Settings.from_dict(s.to_dict()) == s


def test_settings_legacy_keys_and_clamping():
    s = Settings.from_dict({"dailyTarget": 2540, "reminderInterval": 5})
    assert s.daily_target_ml == 2500
    assert s.reminder_interval_minutes == 15

    s = Settings.from_dict({"dailyTargetMl": 9000, "wakeHours": {"start": 30, "end": 0}})
    assert s.daily_target_ml == 4000
    assert s.wake_hours == WakeHours(23, 1)


def test_settings_bad_type_is_corruption():
    with pytest.raises(StateCorruptedError):
        Settings.from_dict({"dailyTargetMl": "lots"})


def test_settings_flags_must_be_booleans():
    assert Settings.from_dict({"soundEnabled": None}).sound_enabled is True
    assert Settings.from_dict({"reminderEnabled": False}).reminder_enabled is False
    for bad in ("false", 0, 1):
        with pytest.raises(StateCorruptedError, match="reminderEnabled"):
            Settings.from_dict({"reminderEnabled": bad})


def test_wake_hours_from_value():
    assert WakeHours.from_value((22, 6)) == WakeHours(22, 6)
    assert WakeHours.from_value({"start": 8, "end": 20}) == WakeHours(8, 20)
    assert WakeHours.from_value([9, 21]).wraps is False
    assert WakeHours(22, 6).wraps
    with pytest.raises(ValueError):
        WakeHours.from_value("7-22")


def test_settings_update_from_mapping():
    u = SettingsUpdate.from_mapping({"dailyTargetMl": 1500, "sound_enabled": False})
    assert u.daily_target_ml == 1500
    assert u.sound_enabled is False
    assert u.reminder_enabled is UNSET
    assert u.present_fields() == {"daily_target_ml": 1500, "sound_enabled": False}


def test_settings_update_unknown_key():
    with pytest.raises(ValueError, match="Unknown settings field"):
        SettingsUpdate.from_mapping({"theme": "dark"})


def test_settings_update_distinguishes_absent_from_current_value():
    """Setting a field to its current value is still a present field."""
    u = SettingsUpdate(reminder_enabled=True)
    assert not u.is_empty()
    assert SettingsUpdate().is_empty()
    assert not UNSET
    assert repr(UNSET) == "UNSET"


def test_settings_apply_leaves_absent_fields():
    s = Settings(daily_target_ml=3000, reminder_interval_minutes=90)
    updated = s.apply(SettingsUpdate(sound_enabled=False, wake_hours=(8, 20)))
    assert updated.daily_target_ml == 3000
    assert updated.reminder_interval_minutes == 90
    assert updated.sound_enabled is False
    assert updated.wake_hours == WakeHours(8, 20)
    # Original untouched
    assert s.sound_enabled is True


def test_log_entry_create():
    e = LogEntry.create(250, 1770796800000, "quick")
    assert len(e.id) == 32
    assert e.amount_ml == 250
    assert LogEntry.create(250, 0).id != e.id


def test_log_entry_legacy_iso_timestamp():
    e = LogEntry.from_dict({"id": "x", "amount": 300, "timestamp": "2026-02-11T08:00:00.000Z"})
    assert e.amount_ml == 300
    assert e.timestamp_ms == 1770796800000
    assert e.kind == "custom"


def test_log_entry_rejects_bad_amount():
    with pytest.raises(StateCorruptedError):
        LogEntry.from_dict({"id": "x", "amountMl": 0, "timestampMs": 0})
    with pytest.raises(StateCorruptedError):
        LogEntry.from_dict({"amountMl": 100, "timestampMs": 0})


def test_daily_record_intake_is_recomputed():
    """A stored intake that disagrees with the entries is ignored."""
    rec = DailyRecord.from_dict({
        "date": "2026-02-11",
        "intakeMl": 9999,
        "entries": [
            {"id": "a", "amountMl": 300, "timestampMs": 2},
            {"id": "b", "amountMl": 200, "timestampMs": 1},
        ],
    })
    assert rec.intake_ml == 500
    assert rec.to_dict()["intakeMl"] == 500
    assert [e.id for e in rec.entries_by_time()] == ["b", "a"]
    assert rec.find("a").amount_ml == 300
    assert rec.find("zzz") is None


def test_daily_record_legacy_logs_key():
    rec = DailyRecord.from_dict({
        "date": "2026-02-11",
        "logs": [{"id": "a", "amount": 250, "timestamp": "2026-02-11T09:00:00Z"}],
    })
    assert rec.intake_ml == 250


def test_history_summary_completed():
    assert HistorySummary(date(2026, 2, 10), 2000, 2000).completed
    assert not HistorySummary(date(2026, 2, 10), 1999, 2000).completed
    legacy = HistorySummary.from_dict({"date": "2026-02-10", "totalIntake": 1800, "target": 1500})
    assert legacy.completed
    assert legacy.to_dict()["totalIntakeMl"] == 1800


def test_state_requires_today():
    with pytest.raises(StateCorruptedError):
        HydrationState.from_dict({"settings": {}})
    with pytest.raises(StateCorruptedError):
        HydrationState.from_dict([])


def test_state_dedups_and_sorts_history():
    state = HydrationState.from_dict({
        "today": {"date": "2026-02-11", "entries": []},
        "history": [
            {"date": "2026-02-10", "totalIntakeMl": 100, "targetMl": 2000},
            {"date": "2026-02-09", "totalIntakeMl": 2000, "targetMl": 2000},
            {"date": "2026-02-10", "totalIntakeMl": 2500, "targetMl": 2000},
        ],
    })
    assert [s.date.isoformat() for s in state.history] == ["2026-02-09", "2026-02-10"]
    assert state.history[-1].total_intake_ml == 2500
    assert [s.date.day for s in state.history_sorted(descending=True)] == [10, 9]


def test_state_roundtrip(workspace):
    import json
    data = json.loads((workspace / "state.json").read_text(encoding="utf-8"))
    state = HydrationState.from_dict(data)
    assert HydrationState.from_dict(state.to_dict()) == state
    assert state.today.intake_ml == 800
    assert state.settings.vibration_enabled is False
