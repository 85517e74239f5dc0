"""
Data-access port consumed by the scheduling core, plus an in-memory adapter.

In production the port is implemented over the REST backend; the core
treats every call as synchronous and value-returning. Raw records are
validated into pydantic models here, at the boundary, so malformed data
never reaches the scheduling engines.

Every (business, staff, date) bucket carries a revision number that is
bumped on each write touching it. Writers pass the revision they read
with ``expected_revision``; a mismatch means someone else booked in the
meantime and the write fails with ConcurrencyError.
"""

import datetime as dt
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from booking_core.exceptions import ConcurrencyError, NotFoundError
from booking_core.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    BookingRequest,
    Service,
)
from booking_core.schemas.schedule_schema import WorkingHours
from booking_core.scheduling.availability import default_weekly_schedule

logger = logging.getLogger(__name__)

BucketKey = tuple[str, str, dt.date]
Record = Union[Mapping[str, Any], Appointment]


@dataclass(frozen=True)
class AppointmentFilter:
    """Optional narrowing for ``list_appointments``."""

    staff_id: Optional[str] = None
    date: Optional[dt.date] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    status: Optional[AppointmentStatus] = None

    def matches(self, appointment: Appointment) -> bool:
        if self.staff_id is not None and appointment.staff_id != self.staff_id:
            return False
        if self.date is not None and appointment.date != self.date:
            return False
        if self.start_date is not None and appointment.date < self.start_date:
            return False
        if self.end_date is not None and appointment.date > self.end_date:
            return False
        if self.status is not None and appointment.status != self.status:
            return False
        return True


def bucket_key(business_id: str, staff_id: str, day: dt.date) -> BucketKey:
    return business_id, staff_id, day


class DataAccess(ABC):
    @abstractmethod
    def list_appointments(
        self, business_id: str, filter: Optional[AppointmentFilter] = None
    ) -> list[Appointment]:
        """Appointments of a business, optionally narrowed."""
        raise NotImplementedError

    @abstractmethod
    def get_appointment(self, appointment_id: str) -> Appointment:
        """Single appointment. Raises NotFoundError."""
        raise NotImplementedError

    @abstractmethod
    def list_working_hours(self, staff_id: str) -> list[WorkingHours]:
        """Seven entries, Monday first."""
        raise NotImplementedError

    @abstractmethod
    def list_services(self, business_id: str) -> list[Service]:
        raise NotImplementedError

    @abstractmethod
    def get_revision(self, business_id: str, staff_id: str, day: dt.date) -> int:
        """Current write revision of one staff member's day."""
        raise NotImplementedError

    @abstractmethod
    def create_appointment(
        self, data: BookingRequest, expected_revision: Optional[int] = None
    ) -> Appointment:
        """Store a new appointment. Raises ConcurrencyError on a stale revision."""
        raise NotImplementedError

    @abstractmethod
    def update_appointment(
        self,
        appointment_id: str,
        changes: Mapping[str, Any],
        expected_revision: Optional[int] = None,
    ) -> Appointment:
        """Reschedule or edit an appointment; ``expected_revision`` is for the target day."""
        raise NotImplementedError

    @abstractmethod
    def update_appointment_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        expected_revision: Optional[int] = None,
    ) -> Appointment:
        """Store a new status. Reopening a cancelled booking passes the revision of its day."""
        raise NotImplementedError


class InMemoryDataAccess(DataAccess):
    """Thread-safe in-memory adapter used by tests and the console demo."""

    def __init__(
        self,
        appointments: Iterable[Record] = (),
        working_hours: Optional[Mapping[str, Iterable[Union[Mapping[str, Any], WorkingHours]]]] = None,
        services: Iterable[Union[Mapping[str, Any], Service]] = (),
    ) -> None:
        self._lock = threading.RLock()
        self._appointments: dict[str, Appointment] = {}
        self._working_hours: dict[str, list[WorkingHours]] = {}
        self._services: dict[str, Service] = {}
        self._revisions: dict[BucketKey, int] = {}

        self.load_appointments(appointments)
        for staff_id, hours in (working_hours or {}).items():
            self.set_working_hours(staff_id, hours)
        for service in services:
            self.add_service(service)

    # --- seeding ---

    def load_appointments(self, records: Iterable[Record]) -> list[Appointment]:
        """Validate and store raw appointment records as-is, without conflict checks."""
        loaded = []
        with self._lock:
            for record in records:
                appt = record if isinstance(record, Appointment) else Appointment.model_validate(record)
                self._appointments[appt.id] = appt
                self._bump(appt)
                loaded.append(appt)
        return loaded

    def set_working_hours(
        self, staff_id: str, hours: Iterable[Union[Mapping[str, Any], WorkingHours]]
    ) -> None:
        entries = [
            h if isinstance(h, WorkingHours) else WorkingHours.model_validate(h)
            for h in hours
        ]
        by_day = {h.day_of_week: h for h in default_weekly_schedule(staff_id)}
        for entry in entries:
            by_day[entry.day_of_week] = entry.model_copy(update={"staff_id": staff_id})
        with self._lock:
            self._working_hours[staff_id] = [by_day[day] for day in range(1, 8)]

    def add_service(self, service: Union[Mapping[str, Any], Service]) -> Service:
        svc = service if isinstance(service, Service) else Service.model_validate(service)
        with self._lock:
            self._services[svc.id] = svc
        return svc

    def reset(self) -> None:
        """Clear all records. Used by test fixtures for isolation."""
        with self._lock:
            self._appointments.clear()
            self._working_hours.clear()
            self._services.clear()
            self._revisions.clear()

    # --- port ---

    def list_appointments(
        self, business_id: str, filter: Optional[AppointmentFilter] = None
    ) -> list[Appointment]:
        with self._lock:
            return [
                a for a in self._appointments.values()
                if a.business_id == business_id and (filter is None or filter.matches(a))
            ]

    def get_appointment(self, appointment_id: str) -> Appointment:
        with self._lock:
            if appointment_id not in self._appointments:
                raise NotFoundError(f"Appointment {appointment_id} not found.")
            return self._appointments[appointment_id]

    def list_working_hours(self, staff_id: str) -> list[WorkingHours]:
        with self._lock:
            hours = self._working_hours.get(staff_id)
        if hours is None:
            return default_weekly_schedule(staff_id)
        return list(hours)

    def list_services(self, business_id: str) -> list[Service]:
        with self._lock:
            return [s for s in self._services.values() if s.business_id == business_id]

    def get_revision(self, business_id: str, staff_id: str, day: dt.date) -> int:
        with self._lock:
            return self._revisions.get(bucket_key(business_id, staff_id, day), 0)

    def create_appointment(
        self, data: BookingRequest, expected_revision: Optional[int] = None
    ) -> Appointment:
        with self._lock:
            self._check_revision(data.business_id, data.staff_id, data.date, expected_revision)
            appt = Appointment(id=f"APT-{uuid.uuid4().hex[:8].upper()}", **data.model_dump())
            self._appointments[appt.id] = appt
            self._bump(appt)
        logger.info(
            "Appointment created: %s for staff %s on %s at %s",
            appt.id, appt.staff_id, appt.date, appt.start_time,
        )
        return appt

    def update_appointment(
        self,
        appointment_id: str,
        changes: Mapping[str, Any],
        expected_revision: Optional[int] = None,
    ) -> Appointment:
        with self._lock:
            current = self.get_appointment(appointment_id)
            updated = Appointment.model_validate({**current.model_dump(), **changes, "id": current.id})
            self._check_revision(updated.business_id, updated.staff_id, updated.date, expected_revision)
            self._appointments[appointment_id] = updated
            self._bump(current)
            self._bump(updated)
        logger.info(
            "Appointment updated: %s now %s at %s for %d min",
            appointment_id, updated.date, updated.start_time, updated.duration,
        )
        return updated

    def update_appointment_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        expected_revision: Optional[int] = None,
    ) -> Appointment:
        with self._lock:
            current = self.get_appointment(appointment_id)
            self._check_revision(current.business_id, current.staff_id, current.date, expected_revision)
            updated = current.model_copy(update={"status": status})
            self._appointments[appointment_id] = updated
            self._bump(updated)
        logger.info("Appointment %s status: %s -> %s", appointment_id, current.status.value, status.value)
        return updated

    # --- internals ---

    def _check_revision(
        self, business_id: str, staff_id: str, day: dt.date, expected: Optional[int]
    ) -> None:
        if expected is None:
            return
        actual = self._revisions.get(bucket_key(business_id, staff_id, day), 0)
        if actual != expected:
            raise ConcurrencyError(
                f"Schedule for staff {staff_id} on {day} changed "
                f"(revision {actual}, expected {expected}). Reload and try again."
            )

    def _bump(self, appointment: Appointment) -> None:
        key = bucket_key(appointment.business_id, appointment.staff_id, appointment.date)
        self._revisions[key] = self._revisions.get(key, 0) + 1
