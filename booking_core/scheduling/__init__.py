from booking_core.scheduling.availability import (
    available_start_times,
    default_weekly_schedule,
    next_available_slot,
    working_hours_for,
)
from booking_core.scheduling.conflicts import ConflictReason, ValidationResult, validate
from booking_core.scheduling.locks import BookingLocks
from booking_core.scheduling.placement import assign_lanes, intervals_overlap, place
from booking_core.scheduling.status_machine import (
    AppointmentStatusMachine,
    PermissivePolicy,
    RestrictedPolicy,
    TransitionPolicy,
)
from booking_core.scheduling.time_grid import build_grid

__all__ = [
    "build_grid",
    "place",
    "assign_lanes",
    "intervals_overlap",
    "validate",
    "ValidationResult",
    "ConflictReason",
    "AppointmentStatusMachine",
    "TransitionPolicy",
    "PermissivePolicy",
    "RestrictedPolicy",
    "available_start_times",
    "next_available_slot",
    "default_weekly_schedule",
    "working_hours_for",
    "BookingLocks",
]
