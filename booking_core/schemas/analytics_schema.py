"""Statistics and dashboard data models."""

import calendar
import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from booking_core.schemas.appointment_schema import Appointment, AppointmentStatus


class DateRange(BaseModel):
    """Inclusive range of calendar dates."""

    start: dt.date
    end: dt.date
    label: str = ""

    @model_validator(mode="after")
    def _check_order_and_label(self):
        if self.start > self.end:
            raise ValueError(f"Range start {self.start} is after end {self.end}")
        if not self.label:
            self.label = describe_range(self.start, self.end)
        return self

    def contains(self, day: dt.date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> list[dt.date]:
        count = (self.end - self.start).days + 1
        return [self.start + dt.timedelta(days=i) for i in range(count)]

    @classmethod
    def day(cls, day: dt.date) -> "DateRange":
        return cls(start=day, end=day)

    @classmethod
    def week_of(cls, day: dt.date) -> "DateRange":
        """Monday-to-Sunday week containing ``day``."""
        monday = day - dt.timedelta(days=day.isoweekday() - 1)
        return cls(start=monday, end=monday + dt.timedelta(days=6))

    @classmethod
    def month_of(cls, day: dt.date) -> "DateRange":
        last = calendar.monthrange(day.year, day.month)[1]
        return cls(start=day.replace(day=1), end=day.replace(day=last))


def describe_range(start: dt.date, end: dt.date) -> str:
    """Human label such as ``Mar 1 - 7, 2025`` or ``Feb 24 - Mar 2, 2025``."""
    if start == end:
        return f"{start:%b} {start.day}, {start.year}"
    if start.year != end.year:
        return f"{start:%b} {start.day}, {start.year} - {end:%b} {end.day}, {end.year}"
    if start.month == end.month:
        return f"{start:%b} {start.day} - {end.day}, {end.year}"
    return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"


class StatisticsFilter(BaseModel):
    """Optional narrowing applied before aggregation."""

    status: Optional[AppointmentStatus] = None
    staff_id: Optional[str] = None
    service_id: Optional[str] = None


class ServiceStat(BaseModel):
    """Booking count and revenue for one service."""

    id: str
    name: str
    count: int = 0
    revenue: int = 0


class StatisticsSnapshot(BaseModel):
    """Aggregate figures for an appointment subset and date range."""

    date_range_label: str
    total_appointments: int = 0
    total_revenue: int = 0
    average_value: float = 0.0
    completion_rate: float = 0.0
    status_counts: dict[AppointmentStatus, int] = Field(
        default_factory=lambda: {status: 0 for status in AppointmentStatus}
    )
    top_services: list[ServiceStat] = Field(default_factory=list)


class TimeSeriesPoint(BaseModel):
    """Revenue and count for one calendar date."""

    date: str
    revenue: int
    count: int


class StatusBreakdownItem(BaseModel):
    """One slice of the appointments-by-status chart."""

    name: str
    value: int


class DashboardSummary(BaseModel):
    """Headline figures for the dashboard landing page."""

    total_appointments: int
    todays_appointments: list[Appointment]
    next_appointment: Optional[Appointment] = None
    recent_bookings: list[Appointment]
    monthly_revenue: int
