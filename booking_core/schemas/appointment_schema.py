"""Appointment and service records exchanged with the data-access layer."""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from booking_core.utils import MINUTES_PER_DAY, format_time, parse_time


class AppointmentStatus(str, Enum):
    """Lifecycle status of an appointment."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    ARRIVED = "Arrived"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "No-Show"


CLOSED_STATUSES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
)


class _Record(BaseModel):
    """Accepts both snake_case and the camelCase keys of the REST backend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AppointmentFields(_Record):
    """Fields shared by a booking request and a stored appointment."""

    business_id: str
    staff_id: str = Field(alias="employeeId")
    client_id: str
    service_id: str
    date: dt.date
    start_time: str
    duration: int = Field(gt=0)
    price: int = Field(ge=0)
    comment: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def _normalize_start_time(cls, value: str) -> str:
        minutes = parse_time(value)
        if minutes >= MINUTES_PER_DAY:
            raise ValueError("start_time must be before 24:00")
        return format_time(minutes)

    @model_validator(mode="after")
    def _check_fits_in_day(self):
        if self.start_minutes + self.duration > MINUTES_PER_DAY:
            raise ValueError(
                f"Appointment starting {self.start_time} for {self.duration} minutes "
                "would cross midnight"
            )
        return self

    @property
    def start_minutes(self) -> int:
        return parse_time(self.start_time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration

    @property
    def end_time(self) -> str:
        return format_time(self.end_minutes)


class BookingRequest(AppointmentFields):
    """A proposed appointment; the id is assigned when it is stored."""

    status: AppointmentStatus = AppointmentStatus.PENDING


class Appointment(AppointmentFields):
    """A stored appointment."""

    id: str
    status: AppointmentStatus = AppointmentStatus.PENDING

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_STATUSES


class Service(_Record):
    """Service offered by a business."""

    id: str
    business_id: str
    name: str
    duration: int = Field(gt=0)
    price: int = Field(ge=0)
    description: Optional[str] = None
    category: Optional[str] = None
