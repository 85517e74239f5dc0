"""
Booking validation against working hours, breaks, and existing appointments.

This is the only gate that preserves the no-double-booking invariant.
The same checks run for the public booking link and for staff creating
or editing an appointment, in a fixed order:

1. Staff not working that day          -> OUTSIDE_WORKING_HOURS
2. Interval not inside working hours   -> OUTSIDE_WORKING_HOURS
3. Interval intersects the break       -> DURING_BREAK
4. Interval overlaps a live booking    -> OVERLAPS_APPOINTMENT

Intervals are half-open, so back-to-back appointments are legal.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from booking_core.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    BookingRequest,
)
from booking_core.schemas.schedule_schema import WorkingHours
from booking_core.scheduling.placement import intervals_overlap
from booking_core.utils import format_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotProbe:
    """A bare time interval for one staff member, used to scan for free start times."""

    staff_id: str
    date: dt.date
    start_minutes: int
    duration: int
    id: Optional[str] = None

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration

    @property
    def start_time(self) -> str:
        return format_time(self.start_minutes)

    @property
    def end_time(self) -> str:
        return format_time(self.end_minutes)


Candidate = Union[BookingRequest, Appointment, SlotProbe]


class ConflictReason(str, Enum):
    """Why a booking was rejected."""

    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    DURING_BREAK = "during_break"
    OVERLAPS_APPOINTMENT = "overlaps_appointment"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one candidate appointment."""

    ok: bool
    reason: Optional[ConflictReason] = None
    message: str = ""
    conflicting_appointment_id: Optional[str] = None

    @classmethod
    def accepted(cls) -> "ValidationResult":
        return cls(ok=True, message="Time is available.")

    @classmethod
    def conflict(
        cls,
        reason: ConflictReason,
        message: str,
        conflicting_appointment_id: Optional[str] = None,
    ) -> "ValidationResult":
        return cls(
            ok=False,
            reason=reason,
            message=message,
            conflicting_appointment_id=conflicting_appointment_id,
        )


def blocks_schedule(appointment: Appointment) -> bool:
    """Every status except Cancelled keeps its time slot occupied."""
    return appointment.status != AppointmentStatus.CANCELLED


def _candidate_id(candidate: Candidate) -> Optional[str]:
    return getattr(candidate, "id", None)


def check_working_hours(candidate: Candidate, hours: WorkingHours) -> ValidationResult:
    """Steps 1-3: working day, working interval, and break."""
    if not hours.is_working:
        return ValidationResult.conflict(
            ConflictReason.OUTSIDE_WORKING_HOURS,
            f"Staff member does not work on {candidate.date:%A}s.",
        )

    start, end = candidate.start_minutes, candidate.end_minutes
    if start < hours.start_minutes or end > hours.end_minutes:
        return ValidationResult.conflict(
            ConflictReason.OUTSIDE_WORKING_HOURS,
            f"{candidate.start_time}-{candidate.end_time} is outside working hours "
            f"{hours.start_time}-{hours.end_time}.",
        )

    break_interval = hours.break_interval
    if break_interval and intervals_overlap(start, end, *break_interval):
        return ValidationResult.conflict(
            ConflictReason.DURING_BREAK,
            f"{candidate.start_time}-{candidate.end_time} overlaps the break "
            f"{hours.break_start}-{hours.break_end}.",
        )

    return ValidationResult.accepted()


def find_overlap(candidate: Candidate, existing: Iterable[Appointment]) -> Optional[Appointment]:
    """Return the first live appointment of the same staff and date that overlaps."""
    own_id = _candidate_id(candidate)
    for other in existing:
        if own_id is not None and other.id == own_id:
            continue
        if other.staff_id != candidate.staff_id or other.date != candidate.date:
            continue
        if not blocks_schedule(other):
            continue
        if intervals_overlap(
            candidate.start_minutes, candidate.end_minutes,
            other.start_minutes, other.end_minutes,
        ):
            return other
    return None


def validate(
    candidate: Candidate,
    existing: Iterable[Appointment],
    working_hours: WorkingHours,
) -> ValidationResult:
    """
    Decide whether ``candidate`` can be placed.

    Args:
        candidate: The proposed booking. When it is a stored appointment
            being edited, its own record in ``existing`` is ignored.
        existing: Appointments already booked for the staff member and date.
            Records for other staff or dates are skipped.
        working_hours: The staff member's hours for the candidate's weekday.

    Returns:
        ValidationResult with ``ok`` set, or the first failing reason.
    """
    result = check_working_hours(candidate, working_hours)
    if not result.ok:
        logger.debug("Booking rejected (%s): %s", result.reason.value, result.message)
        return result

    other = find_overlap(candidate, existing)
    if other is not None:
        result = ValidationResult.conflict(
            ConflictReason.OVERLAPS_APPOINTMENT,
            f"{candidate.start_time}-{candidate.end_time} overlaps appointment {other.id} "
            f"({other.start_time}-{other.end_time}).",
            conflicting_appointment_id=other.id,
        )
        logger.debug("Booking rejected (%s): %s", result.reason.value, result.message)
        return result

    return ValidationResult.accepted()
