"""View-ready calendar structures produced by the scheduling facade."""

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

from booking_core.schemas.appointment_schema import Appointment

ALL_STAFF = "all"

CalendarViewMode = Literal["day", "week"]


class TimeSlot(BaseModel):
    """A single cell of the time grid."""

    hour: int
    minute: int
    is_hour: bool
    label: str
    display_label: str = ""


class Placement(BaseModel):
    """Vertical position and height of an appointment on the grid."""

    offset_px: float
    extent_px: float


class PlacedAppointment(BaseModel):
    """An appointment positioned for rendering."""

    offset_px: float
    extent_px: float
    lane: int = 0
    lane_count: int = 1
    appointment: Appointment


class CalendarDay(BaseModel):
    """All placed appointments of one calendar column."""

    date: dt.date
    appointments: list[PlacedAppointment] = Field(default_factory=list)


class CalendarView(BaseModel):
    """Time grid plus one column per displayed day."""

    staff_id: str
    view: CalendarViewMode
    title: str
    slots: list[TimeSlot]
    days: list[CalendarDay]
