"""Lifecycle hooks for HydroLog.

Hooks run shell commands when the store changes in ways outside programs care
about, e.g. a notification scheduler re-reading reminder settings.
Configured via <root>/hooks.yaml:

    on_settings_changed:
      - "my-scheduler reload"
    post_rollover:
      - command: "backup.sh"
        timeout: 10

Hook points:
- on_settings_changed
- on_goal_reached
- post_rollover
- post_reset
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hydrolog.config import data_root, hooks_config_path, read_yaml

logger = logging.getLogger(__name__)

VALID_HOOK_POINTS = frozenset({
    "on_settings_changed",
    "on_goal_reached",
    "post_rollover",
    "post_reset",
})

DEFAULT_TIMEOUT = 30
OUTPUT_LIMIT = 4096


@dataclass(frozen=True)
class Hook:
    command: str
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_value(cls, value: Any) -> Hook | None:
        """Parse one hooks.yaml entry: a bare command string or a {command, timeout} mapping."""
        if isinstance(value, str):
            return cls(value) if value.strip() else None
        if isinstance(value, dict) and value.get("command"):
            timeout = value.get("timeout", DEFAULT_TIMEOUT)
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                logger.warning("Hook %r has invalid timeout %r, using %ss",
                               value["command"], timeout, DEFAULT_TIMEOUT)
                timeout = DEFAULT_TIMEOUT
            return cls(str(value["command"]), timeout)
        logger.warning("Ignoring malformed hook entry %r", value)
        return None


@dataclass(frozen=True)
class HookResult:
    hook_point: str
    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "hookPoint": self.hook_point,
            "command": self.command,
            "exitCode": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
        }
        if self.error:
            d["error"] = self.error
        return d


def load_hooks(hook_point: str, root: Path | None = None) -> list[Hook]:
    """Hooks registered for *hook_point* in hooks.yaml, in file order."""
    entries = read_yaml(hooks_config_path(root)).get(hook_point) or []
    if not isinstance(entries, list):
        logger.warning("hooks.yaml: %s should be a list, got %r", hook_point, type(entries).__name__)
        return []
    return [hook for hook in map(Hook.from_value, entries) if hook is not None]


def _run_one(hook: Hook, hook_point: str, payload: str, cwd: Path) -> HookResult:
    try:
        proc = subprocess.run(
            hook.command,
            shell=True,
            input=payload,
            capture_output=True,
            text=True,
            timeout=hook.timeout,
            cwd=str(cwd),
        )
    except subprocess.TimeoutExpired:
        logger.warning("Hook %r (%s) timed out after %ss", hook.command, hook_point, hook.timeout)
        return HookResult(hook_point, hook.command, -1, error=f"Hook timed out after {hook.timeout}s")
    except OSError as e:
        logger.warning("Hook %r (%s) failed: %s", hook.command, hook_point, e)
        return HookResult(hook_point, hook.command, -1, error=str(e))

    if proc.returncode != 0:
        logger.warning("Hook %r (%s) exited with %d", hook.command, hook_point, proc.returncode)
    return HookResult(
        hook_point,
        hook.command,
        proc.returncode,
        stdout=proc.stdout[:OUTPUT_LIMIT],
        stderr=proc.stderr[:OUTPUT_LIMIT],
    )


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[HookResult]:
    """Run every hook registered for *hook_point*, feeding *context* as JSON on stdin.

    Hooks run one after another from the data root. A failing hook is logged
    and does not stop the ones after it.
    """
    if hook_point not in VALID_HOOK_POINTS:
        logger.warning("Unknown hook point %r", hook_point)
        return []
    if root is None:
        root = data_root()

    hooks = load_hooks(hook_point, root)
    if not hooks:
        return []
    logger.debug("Running %d hook(s) for %s", len(hooks), hook_point)
    payload = json.dumps(context, ensure_ascii=False)
    return [_run_one(hook, hook_point, payload, root) for hook in hooks]
