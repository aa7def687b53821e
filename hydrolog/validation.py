"""Validation rules for water amounts and settings.

Every check is pure and returns a ValidationResult; nothing here raises for
bad user input.
"""

from __future__ import annotations

import math
from collections.abc import Collection
from dataclasses import dataclass
from numbers import Real
from typing import Any

from hydrolog.errors import Reason
from hydrolog.models import SettingsUpdate, WakeHours


# ── Limits ────────────────────────────────────────────────────

AMOUNT_MIN = 50
AMOUNT_MAX = 1000
TARGET_MIN = 1000
TARGET_MAX = 4000
TARGET_STEP = 100
INTERVAL_MIN = 15
INTERVAL_MAX = 240
WAKE_START_MIN, WAKE_START_MAX = 0, 23
WAKE_END_MIN, WAKE_END_MAX = 1, 24


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Reason | None = None
    message: str = ""
    field: str | None = None

    @classmethod
    def accept(cls) -> ValidationResult:
        return cls(ok=True)

    @classmethod
    def reject(cls, reason: Reason, message: str, field: str | None = None) -> ValidationResult:
        return cls(ok=False, reason=reason, message=message, field=field)

    def for_field(self, name: str) -> ValidationResult:
        if self.ok:
            return self
        return ValidationResult(ok=False, reason=self.reason, message=self.message, field=name)

    def __bool__(self) -> bool:
        return self.ok


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


# ── Amounts ───────────────────────────────────────────────────


def validate_custom_amount(amount: Any, current_intake: int, daily_max: int) -> ValidationResult:
    """Check a user-entered amount against the per-entry range and the daily ceiling."""
    if not _is_number(amount):
        return ValidationResult.reject(Reason.NOT_A_NUMBER, "Amount must be a number")
    if amount != int(amount):
        return ValidationResult.reject(Reason.NOT_A_NUMBER, "Amount must be whole millilitres")
    if amount < AMOUNT_MIN:
        return ValidationResult.reject(Reason.AMOUNT_TOO_LOW, f"Minimum amount is {AMOUNT_MIN}ml")
    if amount > AMOUNT_MAX:
        return ValidationResult.reject(
            Reason.AMOUNT_TOO_HIGH, f"Maximum amount per entry is {AMOUNT_MAX}ml"
        )
    return _check_daily_limit(amount, current_intake, daily_max)


def validate_quick_amount(
    amount: Any, allowed: Collection[int], current_intake: int, daily_max: int
) -> ValidationResult:
    """Check a quick-add amount: it must be one of *allowed*, and fit under the ceiling."""
    if not _is_number(amount) or amount not in allowed:
        return ValidationResult.reject(
            Reason.NOT_A_QUICK_AMOUNT, f"Amount {amount}ml is not a quick add amount"
        )
    return _check_daily_limit(amount, current_intake, daily_max)


def _check_daily_limit(amount: Real, current_intake: int, daily_max: int) -> ValidationResult:
    if current_intake + amount > daily_max:
        return ValidationResult.reject(
            Reason.DAILY_LIMIT_EXCEEDED, f"Daily limit of {daily_max}ml would be exceeded"
        )
    return ValidationResult.accept()


# ── Settings ──────────────────────────────────────────────────


def validate_daily_target(target: Any) -> ValidationResult:
    if not _is_number(target):
        return ValidationResult.reject(Reason.NOT_A_NUMBER, "Target must be a number")
    if target < TARGET_MIN or target > TARGET_MAX:
        return ValidationResult.reject(
            Reason.OUT_OF_RANGE, f"Target must be between {TARGET_MIN}ml and {TARGET_MAX}ml"
        )
    if target % TARGET_STEP != 0:
        return ValidationResult.reject(
            Reason.NOT_A_MULTIPLE_OF_100, f"Target must be a multiple of {TARGET_STEP}ml"
        )
    return ValidationResult.accept()


def validate_reminder_interval(minutes: Any) -> ValidationResult:
    if not _is_number(minutes):
        return ValidationResult.reject(Reason.NOT_A_NUMBER, "Interval must be a number")
    if minutes < INTERVAL_MIN or minutes > INTERVAL_MAX:
        return ValidationResult.reject(
            Reason.OUT_OF_RANGE,
            f"Interval must be between {INTERVAL_MIN} and {INTERVAL_MAX} minutes",
        )
    if minutes != int(minutes):
        return ValidationResult.reject(Reason.OUT_OF_RANGE, "Interval must be whole minutes")
    return ValidationResult.accept()


def validate_wake_hours(start: Any, end: Any) -> ValidationResult:
    """Range-check both ends. start >= end is an overnight window, not an error."""
    for value in (start, end):
        if isinstance(value, bool) or not isinstance(value, int):
            return ValidationResult.reject(Reason.NOT_A_NUMBER, "Wake hours must be whole hours")
    if not WAKE_START_MIN <= start <= WAKE_START_MAX:
        return ValidationResult.reject(
            Reason.OUT_OF_RANGE, f"Wake start must be between {WAKE_START_MIN} and {WAKE_START_MAX}"
        )
    if not WAKE_END_MIN <= end <= WAKE_END_MAX:
        return ValidationResult.reject(
            Reason.OUT_OF_RANGE, f"Wake end must be between {WAKE_END_MIN} and {WAKE_END_MAX}"
        )
    return ValidationResult.accept()


def validate_flag(value: Any) -> ValidationResult:
    if not isinstance(value, bool):
        return ValidationResult.reject(Reason.OUT_OF_RANGE, "Value must be true or false")
    return ValidationResult.accept()


def _validate_wake_value(value: Any) -> ValidationResult:
    try:
        wake = WakeHours.from_value(value)
    except ValueError:
        return ValidationResult.reject(Reason.NOT_A_NUMBER, "Invalid wake hours")
    return validate_wake_hours(wake.start, wake.end)


SETTINGS_VALIDATORS = {
    "daily_target_ml": validate_daily_target,
    "reminder_enabled": validate_flag,
    "reminder_interval_minutes": validate_reminder_interval,
    "sound_enabled": validate_flag,
    "vibration_enabled": validate_flag,
    "wake_hours": _validate_wake_value,
}


def validate_settings_update(update: SettingsUpdate) -> ValidationResult:
    """Validate every present field on its own; the first failure wins."""
    for name, value in update.present_fields().items():
        result = SETTINGS_VALIDATORS[name](value)
        if not result.ok:
            return result.for_field(name)
    return ValidationResult.accept()
