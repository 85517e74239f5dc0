"""
Scheduling facade used by the staff calendar, the booking flows, and analytics.

Orchestrates the time grid, placement, validation, status machine, and
aggregation over records fetched through a DataAccess port. Every method
takes the business and staff ids explicitly; nothing is read from ambient
session state.

Bookings and reschedules run their read -> validate -> write sequence under
a per (business, staff, date) lock, and the write carries the revision that
was read, so two clients racing for the same slot can never both succeed.

Usage:
    service = SchedulingService(InMemoryDataAccess())
    outcome = service.book(request)
    if not outcome.success:
        print(outcome.reason, outcome.message)
"""

import datetime as dt
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Union

from booking_core.analytics.aggregation import StatisticsCalculator
from booking_core.analytics.dashboard import build_dashboard_summary
from booking_core.config import AppConfig, settings
from booking_core.exceptions import (
    BookingValidationError,
    ConcurrencyError,
    SchedulingError,
)
from booking_core.logging_context import get_request_logger
from booking_core.schemas.analytics_schema import (
    DashboardSummary,
    DateRange,
    StatisticsFilter,
    StatisticsSnapshot,
    StatusBreakdownItem,
    TimeSeriesPoint,
)
from booking_core.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    BookingRequest,
)
from booking_core.schemas.calendar_schema import (
    ALL_STAFF,
    CalendarDay,
    CalendarView,
    CalendarViewMode,
    PlacedAppointment,
)
from booking_core.scheduling.availability import available_start_times, working_hours_for
from booking_core.scheduling.conflicts import (
    ConflictReason,
    ValidationResult,
    find_overlap,
    validate,
)
from booking_core.scheduling.locks import BookingLocks
from booking_core.scheduling.placement import assign_lanes, clip_to_grid, is_within_grid, place
from booking_core.scheduling.status_machine import AppointmentStatusMachine
from booking_core.scheduling.time_grid import build_grid
from booking_core.tools.data_access import AppointmentFilter, DataAccess, bucket_key

logger = get_request_logger(__name__)

Candidate = Union[BookingRequest, Appointment]


@dataclass
class BookingOutcome:
    """Result of a booking or reschedule attempt."""

    success: bool
    message: str
    appointment: Optional[Appointment] = None
    reason: Optional[ConflictReason] = None
    conflicting_appointment_id: Optional[str] = None
    error: Optional[SchedulingError] = None

    @classmethod
    def booked(cls, appointment: Appointment, message: str) -> "BookingOutcome":
        return cls(success=True, message=message, appointment=appointment)

    @classmethod
    def rejected(cls, result: ValidationResult) -> "BookingOutcome":
        return cls(
            success=False,
            message=result.message,
            reason=result.reason,
            conflicting_appointment_id=result.conflicting_appointment_id,
            error=BookingValidationError(result),
        )

    @classmethod
    def lost_race(cls, error: ConcurrencyError) -> "BookingOutcome":
        return cls(success=False, message=str(error), error=error)

    def raise_for_error(self) -> None:
        """Re-raise the underlying error for callers that prefer exceptions."""
        if self.error is not None:
            raise self.error


class SchedulingService:
    """Entry point for calendar rendering, booking, and analytics."""

    MAX_WRITE_ATTEMPTS = 2

    def __init__(
        self,
        data_access: DataAccess,
        config: AppConfig = settings,
        status_machine: Optional[AppointmentStatusMachine] = None,
        locks: Optional[BookingLocks] = None,
    ) -> None:
        self._data = data_access
        self._config = config
        self._status_machine = status_machine or AppointmentStatusMachine()
        self._locks = locks or BookingLocks()
        self._calculator = StatisticsCalculator(config.analytics)

    @property
    def status_machine(self) -> AppointmentStatusMachine:
        return self._status_machine

    # --- calendar ---

    def get_calendar(
        self,
        business_id: str,
        staff_id: str,
        anchor_date: dt.date,
        view: CalendarViewMode = "week",
    ) -> CalendarView:
        """
        Time grid plus placed appointments for a day or a Monday-start week.

        Pass ``ALL_STAFF`` as ``staff_id`` to show every staff member;
        overlapping appointments are then spread over side-by-side lanes.
        """
        if view == "day":
            days = [anchor_date]
            title = f"{anchor_date:%B} {anchor_date.day}, {anchor_date.year}"
        else:
            days = DateRange.week_of(anchor_date).days()
            first, last = days[0], days[-1]
            title = f"{first:%b} {first.day} - {last:%b} {last.day}, {last.year}"

        cal = self._config.calendar
        slots = build_grid(cal.start_hour, cal.end_hour, cal.granularity_minutes)
        appointments = self._data.list_appointments(
            business_id,
            AppointmentFilter(
                staff_id=None if staff_id == ALL_STAFF else staff_id,
                start_date=days[0],
                end_date=days[-1],
            ),
        )

        columns = []
        for day in days:
            on_day = sorted(
                (a for a in appointments if a.date == day),
                key=lambda a: (a.start_minutes, a.staff_id),
            )
            columns.append(CalendarDay(date=day, appointments=self._place_day(on_day)))

        logger.debug(
            "Calendar %s for %s/%s: %d appointments",
            title, business_id, staff_id, sum(len(c.appointments) for c in columns),
        )
        return CalendarView(staff_id=staff_id, view=view, title=title, slots=slots, days=columns)

    def _place_day(self, appointments: list[Appointment]) -> list[PlacedAppointment]:
        cal = self._config.calendar
        policy = cal.out_of_range_policy

        visible = []
        for appt in appointments:
            if policy == "exclude" and not is_within_grid(appt, cal.start_hour, cal.end_hour):
                logger.warning(
                    "Appointment %s (%s-%s) falls outside the %02d:00-%02d:00 grid; not shown",
                    appt.id, appt.start_time, appt.end_time, cal.start_hour, cal.end_hour,
                )
                continue
            visible.append(appt)

        placed = []
        for appt, (lane, lane_count) in zip(visible, assign_lanes(visible)):
            placement = place(appt, cal.start_hour, cal.slot_height_px, cal.granularity_minutes)
            if policy == "clip":
                placement = clip_to_grid(
                    placement, cal.start_hour, cal.end_hour,
                    cal.slot_height_px, cal.granularity_minutes,
                )
                if placement is None:
                    continue
            placed.append(PlacedAppointment(
                offset_px=placement.offset_px,
                extent_px=placement.extent_px,
                lane=lane,
                lane_count=lane_count,
                appointment=appt,
            ))
        return placed

    # --- booking ---

    def can_book(self, candidate: Candidate) -> ValidationResult:
        """Validate a booking against the staff member's day without writing anything."""
        existing = self._data.list_appointments(
            candidate.business_id,
            AppointmentFilter(staff_id=candidate.staff_id, date=candidate.date),
        )
        hours = working_hours_for(candidate.date, self._data.list_working_hours(candidate.staff_id))
        return validate(candidate, existing, hours)

    def book(self, request: BookingRequest) -> BookingOutcome:
        """Validate and store a new appointment atomically."""
        key = bucket_key(request.business_id, request.staff_id, request.date)
        with self._locks.hold(key):
            outcome = self._write_with_recheck(
                request,
                lambda revision: self._data.create_appointment(request, expected_revision=revision),
            )
        if outcome.success:
            appt = outcome.appointment
            outcome.message = (
                f"Booked {appt.id} on {appt.date} at {appt.start_time}-{appt.end_time}."
            )
        return outcome

    def reschedule(
        self,
        appointment_id: str,
        date: Optional[dt.date] = None,
        start_time: Optional[str] = None,
        duration: Optional[int] = None,
        price: Optional[int] = None,
    ) -> BookingOutcome:
        """
        Move or resize an existing appointment after revalidating it.

        Raises:
            NotFoundError: If the appointment does not exist.
            ConcurrencyError: If the appointment keeps moving before it can be locked.
        """
        changes: dict[str, Any] = {
            name: value
            for name, value in (
                ("date", date), ("start_time", start_time),
                ("duration", duration), ("price", price),
            )
            if value is not None
        }
        with self._locked_appointment(appointment_id, target_date=date) as current:
            candidate = Appointment.model_validate({**current.model_dump(), **changes})
            outcome = self._write_with_recheck(
                candidate,
                lambda revision: self._data.update_appointment(
                    appointment_id, changes, expected_revision=revision,
                ),
            )
        if outcome.success:
            appt = outcome.appointment
            outcome.message = (
                f"Rescheduled {appt.id} to {appt.date} at {appt.start_time}-{appt.end_time}."
            )
        return outcome

    @contextmanager
    def _locked_appointment(
        self, appointment_id: str, target_date: Optional[dt.date] = None
    ) -> Iterator[Appointment]:
        """
        Hold the locks of an appointment's day (and ``target_date``) and yield a fresh read.

        The bucket is chosen from a read taken before locking, so if the
        appointment was moved in between, the locks are released and taken
        again for its new day.

        Raises:
            ConcurrencyError: If the appointment keeps moving under us.
        """
        current = self._data.get_appointment(appointment_id)
        for attempt in range(1, self.MAX_WRITE_ATTEMPTS + 1):
            key = bucket_key(current.business_id, current.staff_id, current.date)
            target_key = bucket_key(current.business_id, current.staff_id, target_date or current.date)
            with self._locks.hold(key, target_key):
                fresh = self._data.get_appointment(appointment_id)
                if bucket_key(fresh.business_id, fresh.staff_id, fresh.date) == key:
                    yield fresh
                    return
            logger.warning(
                "Appointment %s moved to %s before its lock was taken (attempt %d)",
                appointment_id, fresh.date, attempt,
            )
            current = fresh
        raise ConcurrencyError(
            f"Appointment {appointment_id} kept changing while waiting for its lock. "
            "Reload and try again."
        )

    def _write_with_recheck(
        self,
        candidate: Candidate,
        write: Callable[[int], Appointment],
    ) -> BookingOutcome:
        """Read the revision, validate, and write; re-read once if the write loses a race."""
        last_error: Optional[ConcurrencyError] = None
        for attempt in range(1, self.MAX_WRITE_ATTEMPTS + 1):
            revision = self._data.get_revision(
                candidate.business_id, candidate.staff_id, candidate.date,
            )
            result = self.can_book(candidate)
            if not result.ok:
                logger.info("Booking rejected (%s): %s", result.reason.value, result.message)
                return BookingOutcome.rejected(result)
            try:
                appointment = write(revision)
            except ConcurrencyError as exc:
                logger.warning("Write attempt %d lost a race: %s", attempt, exc)
                last_error = exc
                continue
            return BookingOutcome.booked(appointment, result.message)

        return BookingOutcome.lost_race(last_error)

    def change_status(self, appointment_id: str, status: AppointmentStatus) -> Appointment:
        """
        Apply a staff status change.

        Reopening a Cancelled appointment takes its slot back, so it is
        rejected if another booking has taken that time in the meantime.
        That write carries the revision of the day it was checked against
        and is re-checked once if another writer got in first.

        Raises:
            NotFoundError: If the appointment does not exist.
            InvalidTransitionError: If the transition policy forbids the change.
            BookingValidationError: If reopening would double-book the slot.
            ConcurrencyError: If the reopen keeps losing races to other writers.
        """
        with self._locked_appointment(appointment_id) as current:
            last_error: Optional[ConcurrencyError] = None
            for attempt in range(1, self.MAX_WRITE_ATTEMPTS + 1):
                self._status_machine.ensure_allowed(current, status)
                revision = None
                if current.status == AppointmentStatus.CANCELLED and status != AppointmentStatus.CANCELLED:
                    revision = self._data.get_revision(current.business_id, current.staff_id, current.date)
                    self._ensure_slot_free(current)
                try:
                    stored = self._data.update_appointment_status(
                        appointment_id, status, expected_revision=revision,
                    )
                except ConcurrencyError as exc:
                    logger.warning("Reopening %s lost a race (attempt %d): %s", appointment_id, attempt, exc)
                    last_error = exc
                    current = self._data.get_appointment(appointment_id)
                    continue
                self._status_machine.transition(current, status)
                return stored
        raise last_error

    def _ensure_slot_free(self, appointment: Appointment) -> None:
        existing = self._data.list_appointments(
            appointment.business_id,
            AppointmentFilter(staff_id=appointment.staff_id, date=appointment.date),
        )
        other = find_overlap(appointment, existing)
        if other is not None:
            raise BookingValidationError(ValidationResult.conflict(
                ConflictReason.OVERLAPS_APPOINTMENT,
                f"Cannot reopen {appointment.id}: {appointment.start_time}-{appointment.end_time} "
                f"is now taken by {other.id} ({other.start_time}-{other.end_time}).",
                conflicting_appointment_id=other.id,
            ))

    def available_times(
        self,
        business_id: str,
        staff_id: str,
        day: dt.date,
        duration: int,
        now: Optional[dt.datetime] = None,
    ) -> list[str]:
        """Start times the public booking form may offer for ``day``."""
        not_before = None
        if now is not None:
            not_before = now + dt.timedelta(minutes=self._config.booking.lead_time_minutes)
        existing = self._data.list_appointments(
            business_id, AppointmentFilter(staff_id=staff_id, date=day),
        )
        hours = working_hours_for(day, self._data.list_working_hours(staff_id))
        return available_start_times(
            staff_id, day, duration, hours, existing,
            granularity_minutes=self._config.calendar.granularity_minutes,
            not_before=not_before,
        )

    # --- analytics ---

    def get_statistics(
        self,
        business_id: str,
        date_range: DateRange,
        filters: Optional[StatisticsFilter] = None,
    ) -> StatisticsSnapshot:
        appointments = self._data.list_appointments(
            business_id,
            AppointmentFilter(start_date=date_range.start, end_date=date_range.end),
        )
        names = {s.id: s.name for s in self._data.list_services(business_id)}
        return self._calculator.aggregate(appointments, date_range, filters, names)

    def get_time_series(self, business_id: str, date_range: DateRange) -> list[TimeSeriesPoint]:
        appointments = self._data.list_appointments(
            business_id,
            AppointmentFilter(start_date=date_range.start, end_date=date_range.end),
        )
        return self._calculator.time_series(appointments, date_range)

    def get_status_breakdown(
        self,
        business_id: str,
        date_range: DateRange,
        filters: Optional[StatisticsFilter] = None,
    ) -> list[StatusBreakdownItem]:
        return self._calculator.status_breakdown(self.get_statistics(business_id, date_range, filters))

    def statistics_report(
        self,
        business_id: str,
        date_range: DateRange,
        filters: Optional[StatisticsFilter] = None,
    ) -> str:
        """Plain-text statistics report for logs and the console."""
        return self._calculator.format_report(self.get_statistics(business_id, date_range, filters))

    def dashboard_summary(self, business_id: str, now: dt.datetime) -> DashboardSummary:
        return build_dashboard_summary(
            self._data.list_appointments(business_id),
            now,
            recent_limit=self._config.analytics.recent_bookings_limit,
        )
