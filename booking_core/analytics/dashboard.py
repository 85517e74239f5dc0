"""Headline figures for the dashboard landing page."""

import datetime as dt
from typing import Iterable, Optional

from booking_core.schemas.analytics_schema import DashboardSummary, DateRange
from booking_core.schemas.appointment_schema import Appointment
from booking_core.utils import minutes_of


def todays_appointments(appointments: Iterable[Appointment], today: dt.date) -> list[Appointment]:
    """Appointments on ``today`` ordered by start time."""
    return sorted(
        (a for a in appointments if a.date == today),
        key=lambda a: a.start_minutes,
    )


def next_appointment(appointments: Iterable[Appointment], now: dt.datetime) -> Optional[Appointment]:
    """Earliest appointment today that has not started yet."""
    current = minutes_of(now)
    upcoming = [a for a in todays_appointments(appointments, now.date()) if a.start_minutes > current]
    return upcoming[0] if upcoming else None


def recent_bookings(appointments: Iterable[Appointment], limit: int = 5) -> list[Appointment]:
    """The ``limit`` appointments with the latest dates."""
    return sorted(appointments, key=lambda a: a.date, reverse=True)[:limit]


def monthly_revenue(appointments: Iterable[Appointment], year: int, month: int) -> int:
    month_range = DateRange.month_of(dt.date(year, month, 1))
    return sum(a.price for a in appointments if month_range.contains(a.date))


def build_dashboard_summary(
    appointments: Iterable[Appointment],
    now: dt.datetime,
    recent_limit: int = 5,
) -> DashboardSummary:
    appointments = list(appointments)
    return DashboardSummary(
        total_appointments=len(appointments),
        todays_appointments=todays_appointments(appointments, now.date()),
        next_appointment=next_appointment(appointments, now),
        recent_bookings=recent_bookings(appointments, recent_limit),
        monthly_revenue=monthly_revenue(appointments, now.year, now.month),
    )
