"""Error taxonomy for the scheduling core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from booking_core.scheduling.conflicts import ValidationResult


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling core."""


class BookingValidationError(SchedulingError):
    """A booking broke working hours, a break, or another appointment."""

    def __init__(self, result: ValidationResult) -> None:
        super().__init__(result.message)
        self.result = result

    @property
    def reason(self):
        return self.result.reason


class NotFoundError(SchedulingError):
    """A referenced appointment, staff member, or service does not exist."""


class ConcurrencyError(SchedulingError):
    """A write was based on stale data; retry with a fresh read."""


class InvalidTransitionError(SchedulingError):
    """Raised when the transition policy rejects a status change."""
