"""State persistence for HydroLog: atomic JSON files, in-memory copies,
and versioned export/import.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from hydrolog.errors import PersistenceError, StateCorruptedError
from hydrolog.models import HydrationState

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"


class Persistence(Protocol):
    def load(self) -> HydrationState | None: ...

    def save(self, state: HydrationState) -> None: ...


def _atomic_write(path: Path, content: str, suffix: str = ".tmp") -> None:
    """Atomic write with file locking: temp file + flock + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.rename(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def _dumps(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _parse_state(text: str) -> HydrationState:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StateCorruptedError(f"State is not valid JSON: {e}") from e
    return HydrationState.from_dict(data)


# ── File-backed ───────────────────────────────────────────────


class FileStatePersistence:
    """Stores the whole state as one JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> HydrationState | None:
        try:
            if not self.path.exists():
                return None
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        if not text.strip():
            return None
        state = _parse_state(text)
        logger.debug("Loaded state from %s (%d history days)", self.path, len(state.history))
        return state

    def save(self, state: HydrationState) -> None:
        try:
            _atomic_write(self.path, _dumps(state.to_dict()), suffix=".json")
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e


class MemoryPersistence:
    """Keeps a serialized copy in memory. Useful for tests and embedding."""

    def __init__(self, state: HydrationState | None = None) -> None:
        self.saves = 0
        self._text: str | None = _dumps(state.to_dict()) if state else None

    def load(self) -> HydrationState | None:
        if self._text is None:
            return None
        return _parse_state(self._text)

    def save(self, state: HydrationState) -> None:
        self._text = _dumps(state.to_dict())
        self.saves += 1


# ── Export / import ───────────────────────────────────────────


def export_state(state: HydrationState, exported_at: datetime) -> str:
    """Serialize *state* as a versioned backup document."""
    return _dumps({
        "version": EXPORT_VERSION,
        "exportDate": exported_at.isoformat(timespec="seconds"),
        "data": state.to_dict(),
    })


def import_state(text: str) -> HydrationState:
    """Parse a backup produced by export_state. Raises StateCorruptedError."""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise StateCorruptedError(f"Backup is not valid JSON: {e}") from e
    if not isinstance(parsed, dict) or not isinstance(parsed.get("data"), dict):
        raise StateCorruptedError("Invalid export data format")
    version = parsed.get("version")
    if version != EXPORT_VERSION:
        logger.warning("Importing backup with version %r (expected %s)", version, EXPORT_VERSION)
    return HydrationState.from_dict(parsed["data"])
