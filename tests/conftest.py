"""Shared test fixtures for HydroLog tests."""

from __future__ import annotations

import json
import os
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
import yaml

from hydrolog.config import AppConfig
from hydrolog.models import HistorySummary
from hydrolog.storage import MemoryPersistence
from hydrolog.store import HydrationStore

UTC = ZoneInfo("UTC")

# Wednesday; the week starts Monday 2026-02-09
NOW = datetime(2026, 2, 11, 10, 0, tzinfo=UTC)


def at(day: str, hour: int = 10, minute: int = 0) -> datetime:
    """A UTC datetime on *day* ('YYYY-MM-DD')."""
    d = date.fromisoformat(day)
    return datetime(d.year, d.month, d.day, hour, minute, tzinfo=UTC)


def summaries(*rows: tuple[str, int, int]) -> list[HistorySummary]:
    """Build history from (date, intake, target) rows."""
    return [
        HistorySummary(date=date.fromisoformat(d), total_intake_ml=intake, target_ml=target)
        for d, intake, target in rows
    ]


class FailingPersistence:
    """A collaborator whose disk is gone."""

    def __init__(self) -> None:
        self.attempts = 0

    def load(self):
        return None

    def save(self, state) -> None:
        self.attempts += 1
        raise OSError("No space left on device")


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary data root with config and saved state."""
    root = tmp_path / "hydrolog"
    root.mkdir(parents=True)

    config = {
        "timezone": "UTC",
        "daily_max_ml": 5000,
        "quick_amounts": [200, 300, 500],
        "history_retention_days": 30,
        "week_start": "mon",
    }
    (root / "config.yaml").write_text(
        yaml.dump(config, default_flow_style=False), encoding="utf-8"
    )

    state = {
        "settings": {
            "dailyTargetMl": 2000,
            "reminderEnabled": True,
            "reminderIntervalMinutes": 60,
            "soundEnabled": True,
            "vibrationEnabled": False,
            "wakeHours": {"start": 7, "end": 22},
        },
        "today": {
            "date": "2026-02-11",
            "intakeMl": 800,
            "entries": [
                {"id": "e1", "amountMl": 300, "timestampMs": 1770796800000, "kind": "quick"},
                {"id": "e2", "amountMl": 500, "timestampMs": 1770800400000, "kind": "quick"},
            ],
        },
        "history": [
            {"date": "2026-02-08", "totalIntakeMl": 2100, "targetMl": 2000, "completed": True},
            {"date": "2026-02-09", "totalIntakeMl": 2000, "targetMl": 2000, "completed": True},
            {"date": "2026-02-10", "totalIntakeMl": 1500, "targetMl": 2000, "completed": False},
        ],
    }
    (root / "state.json").write_text(
        json.dumps(state, indent=2), encoding="utf-8"
    )

    # Set env var
    os.environ["HYDROLOG_ROOT"] = str(root)
    yield root
    # Cleanup
    if "HYDROLOG_ROOT" in os.environ:
        del os.environ["HYDROLOG_ROOT"]


@pytest.fixture
def persistence() -> MemoryPersistence:
    return MemoryPersistence()


@pytest.fixture
def hook_calls() -> list[tuple[str, dict]]:
    return []


@pytest.fixture
def store(persistence: MemoryPersistence, hook_calls: list) -> HydrationStore:
    """A store on an in-memory collaborator with the clock frozen at NOW."""
    return HydrationStore(
        config=AppConfig(),
        persistence=persistence,
        clock=lambda: NOW,
        hooks=lambda point, context: hook_calls.append((point, context)),
    )
