"""Shared test fixtures and helpers."""

import datetime as dt
from typing import Optional

import pytest

from booking_core.config import AnalyticsConfig, AppConfig, BookingConfig, CalendarConfig
from booking_core.facade import SchedulingService
from booking_core.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    BookingRequest,
)
from booking_core.schemas.schedule_schema import WorkingHours
from booking_core.scheduling.status_machine import AppointmentStatusMachine, PermissivePolicy
from booking_core.tools.data_access import InMemoryDataAccess

BUSINESS_ID = "BIZ-1"
STAFF_ID = "EMP-1"
# A Monday
MONDAY = dt.date(2025, 3, 10)


def make_appointment(
    id: str = "APT-1",
    start_time: str = "10:00",
    duration: int = 60,
    status: AppointmentStatus = AppointmentStatus.PENDING,
    day: dt.date = MONDAY,
    staff_id: str = STAFF_ID,
    price: int = 5000,
    service_id: str = "SVC-1",
    business_id: str = BUSINESS_ID,
    client_id: str = "CLI-1",
) -> Appointment:
    """Helper to create an Appointment with sensible defaults."""
    return Appointment(
        id=id,
        business_id=business_id,
        staff_id=staff_id,
        client_id=client_id,
        service_id=service_id,
        date=day,
        start_time=start_time,
        duration=duration,
        price=price,
        status=status,
    )


def make_request(
    start_time: str = "10:00",
    duration: int = 60,
    day: dt.date = MONDAY,
    staff_id: str = STAFF_ID,
    price: int = 5000,
    service_id: str = "SVC-1",
    client_id: str = "CLI-1",
) -> BookingRequest:
    """Helper to create a BookingRequest for the default business."""
    return BookingRequest(
        business_id=BUSINESS_ID,
        staff_id=staff_id,
        client_id=client_id,
        service_id=service_id,
        date=day,
        start_time=start_time,
        duration=duration,
        price=price,
    )


def make_hours(
    start_time: str = "09:00",
    end_time: str = "17:00",
    break_start: Optional[str] = None,
    break_end: Optional[str] = None,
    day_of_week: int = 1,
    is_working: bool = True,
) -> WorkingHours:
    return WorkingHours(
        staff_id=STAFF_ID,
        day_of_week=day_of_week,
        is_working=is_working,
        start_time=start_time,
        end_time=end_time,
        break_start=break_start,
        break_end=break_end,
    )


@pytest.fixture
def monday_hours():
    """Monday 09:00-17:00 with a 12:00-13:00 break."""
    return make_hours(break_start="12:00", break_end="13:00")


@pytest.fixture
def app_config():
    return AppConfig(
        calendar=CalendarConfig(
            start_hour=8,
            end_hour=22,
            granularity_minutes=30,
            slot_height_px=30.0,
            out_of_range_policy="exclude",
        ),
        booking=BookingConfig(
            transition_policy="permissive",
            lead_time_minutes=30,
            default_day_start="09:00",
            default_day_end="17:00",
            default_working_days=5,
        ),
        analytics=AnalyticsConfig(
            top_services_limit=5,
            recent_bookings_limit=5,
            unknown_service_label="Unknown Service",
        ),
    )


@pytest.fixture
def data_access():
    data = InMemoryDataAccess(
        working_hours={
            STAFF_ID: [
                {"dayOfWeek": day, "startTime": "09:00", "endTime": "17:00",
                 "breakStart": "12:00", "breakEnd": "13:00"}
                for day in range(1, 6)
            ],
        },
        services=[
            {"id": "SVC-1", "businessId": BUSINESS_ID, "name": "Haircut", "duration": 60, "price": 5000},
            {"id": "SVC-2", "businessId": BUSINESS_ID, "name": "Colouring", "duration": 90, "price": 9000},
        ],
    )
    yield data
    data.reset()


@pytest.fixture
def status_machine():
    return AppointmentStatusMachine(PermissivePolicy())


@pytest.fixture
def scheduling_service(data_access, app_config, status_machine):
    return SchedulingService(data_access, config=app_config, status_machine=status_machine)
