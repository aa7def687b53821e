"""Rejection reasons and exception types for HydroLog."""

from __future__ import annotations

from enum import Enum


class Reason(str, Enum):
    """Closed set of reasons an operation can be rejected for."""

    AMOUNT_TOO_LOW = "AmountTooLow"
    AMOUNT_TOO_HIGH = "AmountTooHigh"
    DAILY_LIMIT_EXCEEDED = "DailyLimitExceeded"
    NOT_A_QUICK_AMOUNT = "NotAQuickAmount"
    OUT_OF_RANGE = "OutOfRange"
    NOT_A_MULTIPLE_OF_100 = "NotAMultipleOf100"
    NOT_A_NUMBER = "NotANumber"
    NOT_FOUND = "NotFound"

    def __str__(self) -> str:
        return self.value


class HydroLogError(Exception):
    """Base class for unexpected (non-validation) failures."""


class PersistenceError(HydroLogError):
    """Loading or saving state through the persistence collaborator failed."""


class StateCorruptedError(HydroLogError):
    """Stored state could not be interpreted as a hydration state."""
