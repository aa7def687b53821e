"""Reminder decisions for an external notification scheduler.

Nothing here delivers a notification or writes to the store; the scheduler
reads the settings snapshot and asks whether a reminder is allowed now.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from hydrolog.dates import is_hour_active
from hydrolog.models import Settings, WakeHours

# Pause once intake reaches 90% of target
PAUSE_TARGET_FRACTION = 0.9
# ...or when less than 80% of the interval has passed since the last reminder
PAUSE_INTERVAL_FRACTION = 0.8

MESSAGES = {
    "early": [
        "Great start! Keep up the hydration!",
        "You're on your way to your goal!",
        "Every sip counts towards your target!",
        "Morning hydration is important!",
    ],
    "midway": [
        "Halfway there! You're doing great!",
        "Keep going, you're making progress!",
        "Your body will thank you for this!",
        "Stay consistent with your hydration!",
    ],
    "close": [
        "Almost there! Just a little more!",
        "You're so close to your daily goal!",
        "Final push to reach your target!",
        "Don't stop now, you've got this!",
    ],
    "reached": [
        "Congratulations! You've reached your goal!",
        "Amazing work! Target achieved!",
        "You did it! Daily goal completed!",
        "Perfect hydration today!",
    ],
}


@dataclass(frozen=True)
class ReminderSettings:
    """The part of Settings a notification scheduler consumes."""

    enabled: bool
    interval_minutes: int
    sound: bool
    vibration: bool
    wake_hours: WakeHours

    @classmethod
    def from_settings(cls, settings: Settings) -> ReminderSettings:
        return cls(
            enabled=settings.reminder_enabled,
            interval_minutes=settings.reminder_interval_minutes,
            sound=settings.sound_enabled,
            vibration=settings.vibration_enabled,
            wake_hours=settings.wake_hours,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "reminderEnabled": self.enabled,
            "reminderIntervalMinutes": self.interval_minutes,
            "soundEnabled": self.sound,
            "vibrationEnabled": self.vibration,
            "wakeHours": self.wake_hours.to_dict(),
        }


@dataclass(frozen=True)
class ReminderDecision:
    deliver: bool
    reason: str  # due, disabled, outside_wake_hours, paused
    fire_at: datetime | None = None
    category: str = ""
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "deliver": self.deliver,
            "reason": self.reason,
            "fireAt": self.fire_at.isoformat(timespec="seconds") if self.fire_at else None,
            "category": self.category,
            "message": self.message,
        }


def is_reminder_window(settings: ReminderSettings, now: datetime) -> bool:
    return is_hour_active(now.hour, settings.wake_hours.start, settings.wake_hours.end)


def should_pause_reminders(
    intake: int,
    target: int,
    last_reminder_at: datetime | None,
    interval_minutes: int,
    now: datetime,
) -> bool:
    """Pause when the target is nearly reached or the last reminder was recent."""
    if intake >= target * PAUSE_TARGET_FRACTION:
        return True
    if last_reminder_at is not None:
        minutes_since = (now - last_reminder_at).total_seconds() / 60
        if minutes_since < interval_minutes * PAUSE_INTERVAL_FRACTION:
            return True
    return False


def next_reminder_at(settings: ReminderSettings, now: datetime) -> datetime | None:
    """One interval from *now*, pushed forward to the next wake hour if needed."""
    if not settings.enabled:
        return None
    candidate = now + timedelta(minutes=settings.interval_minutes)
    if is_reminder_window(settings, candidate):
        return candidate
    t = candidate.replace(minute=0, second=0, microsecond=0)
    for _ in range(24):
        t += timedelta(hours=1)
        if is_reminder_window(settings, t):
            return t
    return None


def reminder_category(intake: int, target: int) -> str:
    progress = (intake / target) * 100 if target > 0 else 0
    if progress >= 100:
        return "reached"
    if progress >= 75:
        return "close"
    if progress >= 40:
        return "midway"
    return "early"


def reminder_message(intake: int, target: int, rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    return rng.choice(MESSAGES[reminder_category(intake, target)])


def decide_reminder(
    settings: ReminderSettings,
    intake: int,
    target: int,
    now: datetime,
    last_reminder_at: datetime | None = None,
    rng: random.Random | None = None,
) -> ReminderDecision:
    """Decide whether a reminder may be delivered at *now*."""
    if not settings.enabled:
        return ReminderDecision(deliver=False, reason="disabled")

    fire_at = next_reminder_at(settings, now)
    if not is_reminder_window(settings, now):
        return ReminderDecision(deliver=False, reason="outside_wake_hours", fire_at=fire_at)
    if should_pause_reminders(intake, target, last_reminder_at, settings.interval_minutes, now):
        return ReminderDecision(deliver=False, reason="paused", fire_at=fire_at)

    return ReminderDecision(
        deliver=True,
        reason="due",
        fire_at=fire_at,
        category=reminder_category(intake, target),
        message=reminder_message(intake, target, rng),
    )
