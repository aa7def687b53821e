"""Data root, path helpers and app configuration for HydroLog.

Configuration lives in <root>/config.yaml. Every key is optional; anything
missing or unusable falls back to its default.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import yaml

from hydrolog.dates import DAY_NAMES, get_timezone

logger = logging.getLogger(__name__)

ENV_ROOT = "HYDROLOG_ROOT"

DEFAULT_DAILY_MAX_ML = 5000
DEFAULT_QUICK_AMOUNTS = (200, 300, 500)
DEFAULT_RETENTION_DAYS = 30


def data_root() -> Path:
    """Directory holding state.json, config.yaml, hooks.yaml and logs/."""
    return Path(
        os.environ.get(ENV_ROOT, str(Path.home() / ".hydrolog"))
    ).expanduser().resolve()


# ── Path helpers ──────────────────────────────────────────────

def state_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "state.json"


def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "config.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "hooks.yaml"


def log_dir(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "logs"


def read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping, returning {} if missing, empty or unparsable."""
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        result = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.warning("Ignoring unparsable %s: %s", path, e)
        return {}
    return result if isinstance(result, dict) else {}


# ── AppConfig ─────────────────────────────────────────────────


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass(frozen=True)
class AppConfig:
    timezone: str = "UTC"
    daily_max_ml: int = DEFAULT_DAILY_MAX_ML
    quick_amounts: tuple[int, ...] = field(default=DEFAULT_QUICK_AMOUNTS)
    history_retention_days: int | None = DEFAULT_RETENTION_DAYS
    week_start: str = "mon"
    log_level: str = "INFO"

    @property
    def tz(self) -> ZoneInfo:
        return get_timezone(self.timezone)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AppConfig:
        if not d or not isinstance(d, dict):
            return cls()
        defaults = cls()
        kwargs: dict[str, Any] = {}

        if "timezone" in d:
            kwargs["timezone"] = str(d["timezone"])

        if "daily_max_ml" in d:
            if _positive_int(d["daily_max_ml"]):
                kwargs["daily_max_ml"] = d["daily_max_ml"]
            else:
                logger.warning("Invalid daily_max_ml %r, using %d", d["daily_max_ml"], defaults.daily_max_ml)

        if "quick_amounts" in d:
            amounts = d["quick_amounts"]
            if isinstance(amounts, list) and amounts and all(_positive_int(a) for a in amounts):
                kwargs["quick_amounts"] = tuple(amounts)
            else:
                logger.warning("Invalid quick_amounts %r, using %s", amounts, list(defaults.quick_amounts))

        if "history_retention_days" in d:
            days = d["history_retention_days"]
            if days is None or _positive_int(days):
                kwargs["history_retention_days"] = days
            else:
                logger.warning("Invalid history_retention_days %r, using %s", days, defaults.history_retention_days)

        if "week_start" in d:
            week_start = str(d["week_start"]).lower()[:3]
            if week_start in DAY_NAMES:
                kwargs["week_start"] = week_start
            else:
                logger.warning("Invalid week_start %r, using %s", d["week_start"], defaults.week_start)

        if "log_level" in d:
            kwargs["log_level"] = str(d["log_level"]).upper()

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "daily_max_ml": self.daily_max_ml,
            "quick_amounts": list(self.quick_amounts),
            "history_retention_days": self.history_retention_days,
            "week_start": self.week_start,
            "log_level": self.log_level,
        }


def load_config(root: Path | None = None) -> AppConfig:
    """Load config.yaml from the data root."""
    return AppConfig.from_dict(read_yaml(config_path(root)))
