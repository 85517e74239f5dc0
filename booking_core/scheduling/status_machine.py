"""
Appointment status lifecycle with a pluggable transition policy.

Staff move appointments between six statuses. The default policy lets any
status move to any other, matching how the dashboard has always behaved.
A restricted policy with an explicit transition table can be selected
through ``STATUS_TRANSITION_POLICY=restricted`` or registered under a new
name with ``register_transition_policy``.

Transitions change nothing but the stored status: revenue and completion
figures are recomputed from current statuses on every statistics query.

Usage:
    machine = AppointmentStatusMachine()
    confirmed = machine.transition(appointment, AppointmentStatus.CONFIRMED)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from booking_core.config import settings
from booking_core.exceptions import InvalidTransitionError
from booking_core.schemas.appointment_schema import (
    CLOSED_STATUSES,
    Appointment,
    AppointmentStatus,
)

logger = logging.getLogger(__name__)


def is_closed(status: AppointmentStatus) -> bool:
    """Completed, Cancelled, and No-Show are closed."""
    return status in CLOSED_STATUSES


@dataclass(frozen=True)
class Transition:
    """A single permitted status change."""
    from_status: AppointmentStatus
    to_status: AppointmentStatus


@dataclass(frozen=True)
class StatusChange:
    """Recorded history entry for one applied transition."""
    appointment_id: str
    from_status: AppointmentStatus
    to_status: AppointmentStatus
    changed_at: datetime


class TransitionPolicy:
    """Decides which status changes staff may apply."""

    name = "base"

    def is_allowed(self, from_status: AppointmentStatus, to_status: AppointmentStatus) -> bool:
        raise NotImplementedError

    def allowed_targets(self, from_status: AppointmentStatus) -> list[AppointmentStatus]:
        return [s for s in AppointmentStatus if s != from_status and self.is_allowed(from_status, s)]


class PermissivePolicy(TransitionPolicy):
    """Any status may move to any other."""

    name = "permissive"

    def is_allowed(self, from_status: AppointmentStatus, to_status: AppointmentStatus) -> bool:
        return True


class RestrictedPolicy(TransitionPolicy):
    """
    Forward-only workflow. Closed statuses have no exits.

    Re-applying the current status is always allowed and is a no-op.
    """

    name = "restricted"

    TRANSITIONS: list[Transition] = [
        # --- Forward workflow ---
        Transition(AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED),
        Transition(AppointmentStatus.CONFIRMED, AppointmentStatus.ARRIVED),
        Transition(AppointmentStatus.ARRIVED, AppointmentStatus.COMPLETED),

        # --- Cancellation ---
        Transition(AppointmentStatus.PENDING, AppointmentStatus.CANCELLED),
        Transition(AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED),
        Transition(AppointmentStatus.ARRIVED, AppointmentStatus.CANCELLED),

        # --- No-show ---
        Transition(AppointmentStatus.PENDING, AppointmentStatus.NO_SHOW),
        Transition(AppointmentStatus.CONFIRMED, AppointmentStatus.NO_SHOW),
    ]

    def is_allowed(self, from_status: AppointmentStatus, to_status: AppointmentStatus) -> bool:
        if from_status == to_status:
            return True
        return any(
            t.from_status == from_status and t.to_status == to_status
            for t in self.TRANSITIONS
        )


_POLICY_REGISTRY: dict[str, Callable[[], TransitionPolicy]] = {}


def register_transition_policy(name: str, factory: Callable[[], TransitionPolicy]) -> None:
    """Register a transition policy factory by name."""
    _POLICY_REGISTRY[name] = factory
    logger.debug("Transition policy registered: %s", name)


def get_transition_policy(name: str) -> TransitionPolicy:
    """Create a transition policy by registered name.

    Raises:
        KeyError: If the policy name is not registered.
    """
    if name not in _POLICY_REGISTRY:
        registered = list(_POLICY_REGISTRY.keys())
        raise KeyError(f"Transition policy '{name}' not registered. Available: {registered}")
    return _POLICY_REGISTRY[name]()


register_transition_policy(PermissivePolicy.name, PermissivePolicy)
register_transition_policy(RestrictedPolicy.name, RestrictedPolicy)


class AppointmentStatusMachine:
    """
    Applies status changes to appointments under a transition policy.

    The machine never mutates the appointment it is given; it returns an
    updated copy and keeps a per-appointment history of applied changes.
    """

    INITIAL_STATUS = AppointmentStatus.PENDING

    def __init__(self, policy: Optional[TransitionPolicy] = None) -> None:
        self._policy = policy or get_transition_policy(settings.booking.transition_policy)
        self._history: dict[str, list[StatusChange]] = {}

    @property
    def policy(self) -> TransitionPolicy:
        return self._policy

    def can_transition(self, from_status: AppointmentStatus, to_status: AppointmentStatus) -> bool:
        return self._policy.is_allowed(from_status, to_status)

    def ensure_allowed(self, appointment: Appointment, new_status: AppointmentStatus) -> None:
        """Raise InvalidTransitionError if the policy rejects the change."""
        old_status = appointment.status
        if not self._policy.is_allowed(old_status, new_status):
            valid = [s.value for s in self._policy.allowed_targets(old_status)]
            raise InvalidTransitionError(
                f"Cannot move appointment {appointment.id} from '{old_status.value}' "
                f"to '{new_status.value}' under the {self._policy.name} policy. "
                f"Valid targets: {valid}"
            )

    def transition(self, appointment: Appointment, new_status: AppointmentStatus) -> Appointment:
        """
        Move an appointment to ``new_status``.

        Returns:
            A copy of the appointment carrying the new status.

        Raises:
            InvalidTransitionError: If the policy rejects the change.
        """
        old_status = appointment.status
        self.ensure_allowed(appointment, new_status)

        self._history.setdefault(appointment.id, []).append(StatusChange(
            appointment_id=appointment.id,
            from_status=old_status,
            to_status=new_status,
            changed_at=datetime.now(timezone.utc),
        ))
        logger.debug(
            "Status transition for %s: %s -> %s",
            appointment.id, old_status.value, new_status.value,
        )
        return appointment.model_copy(update={"status": new_status})

    def get_valid_targets(self, appointment: Appointment) -> list[AppointmentStatus]:
        """Return all statuses reachable from the appointment's current status."""
        return self._policy.allowed_targets(appointment.status)

    def get_history(self, appointment_id: str) -> list[StatusChange]:
        """Return the status changes applied to one appointment, oldest first."""
        return list(self._history.get(appointment_id, []))
