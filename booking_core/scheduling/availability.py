"""
Free start times for the public booking form.

Steps through a staff member's working day from the opening time in
granularity increments and keeps every start time at which a booking of
the requested duration passes the same validation the booking itself
will go through.
"""

import datetime as dt
import logging
from typing import Iterable, Optional, Sequence

from booking_core.config import BookingConfig, settings
from booking_core.schemas.appointment_schema import Appointment
from booking_core.schemas.schedule_schema import WorkingHours
from booking_core.scheduling.conflicts import SlotProbe, validate
from booking_core.scheduling.time_grid import DEFAULT_GRANULARITY_MINUTES
from booking_core.utils import MINUTES_PER_DAY, format_time, minutes_of, parse_time

logger = logging.getLogger(__name__)


def default_weekly_schedule(
    staff_id: Optional[str] = None,
    config: BookingConfig = settings.booking,
) -> list[WorkingHours]:
    """Schedule used for staff with no stored hours: weekdays working, weekend off."""
    return [
        WorkingHours(
            staff_id=staff_id,
            day_of_week=day,
            is_working=day <= config.default_working_days,
            start_time=config.default_day_start,
            end_time=config.default_day_end,
        )
        for day in range(1, 8)
    ]


def working_hours_for(day: dt.date, schedule: Sequence[WorkingHours]) -> WorkingHours:
    """Entry of ``schedule`` for the ISO weekday of ``day``; a day off if missing."""
    weekday = day.isoweekday()
    for entry in schedule:
        if entry.day_of_week == weekday:
            return entry
    return WorkingHours(day_of_week=weekday, is_working=False)


def available_start_times(
    staff_id: str,
    day: dt.date,
    duration: int,
    working_hours: WorkingHours,
    existing: Iterable[Appointment],
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
    not_before: Optional[dt.datetime] = None,
    exclude_appointment_id: Optional[str] = None,
) -> list[str]:
    """
    List ``HH:MM`` start times on ``day`` where a booking would be accepted.

    Args:
        staff_id: Staff member being booked.
        day: Calendar date of the booking.
        duration: Requested duration in minutes.
        working_hours: The staff member's hours for ``day``'s weekday.
        existing: Appointments already booked for the staff member on ``day``.
        granularity_minutes: Step between candidate start times, counted from opening.
        not_before: Earliest acceptable start; dates before it yield nothing.
        exclude_appointment_id: Appointment being rescheduled, ignored as a conflict.
    """
    if duration <= 0 or not working_hours.is_working:
        return []

    earliest = 0
    if not_before is not None:
        if day < not_before.date():
            return []
        if day == not_before.date():
            earliest = minutes_of(not_before)

    existing = list(existing)
    first = working_hours.start_minutes
    last = min(working_hours.end_minutes, MINUTES_PER_DAY) - duration

    times: list[str] = []
    for start in range(first, last + 1, granularity_minutes):
        if start < earliest:
            continue
        probe = SlotProbe(
            staff_id=staff_id,
            date=day,
            start_minutes=start,
            duration=duration,
            id=exclude_appointment_id,
        )
        if validate(probe, existing, working_hours).ok:
            times.append(format_time(start))

    logger.debug(
        "%d start times free for %s on %s (%d min)", len(times), staff_id, day, duration,
    )
    return times


def next_available_slot(
    staff_id: str,
    day: dt.date,
    duration: int,
    working_hours: WorkingHours,
    existing: Iterable[Appointment],
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
    not_before: Optional[dt.datetime] = None,
) -> Optional[tuple[str, str]]:
    """First free ``(start, end)`` pair on ``day``, or None when the day is full."""
    times = available_start_times(
        staff_id, day, duration, working_hours, existing,
        granularity_minutes=granularity_minutes,
        not_before=not_before,
    )
    if not times:
        return None
    start = times[0]
    return start, format_time(parse_time(start) + duration)
