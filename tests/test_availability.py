"""Tests for free start time lookup and default schedules."""

import datetime as dt

from booking_core.config import BookingConfig
from booking_core.schemas.appointment_schema import AppointmentStatus
from booking_core.scheduling.availability import (
    available_start_times,
    default_weekly_schedule,
    next_available_slot,
    working_hours_for,
)
from tests.conftest import MONDAY, STAFF_ID, make_appointment, make_hours


class TestAvailableStartTimes:
    def test_empty_day_hourly(self):
        times = available_start_times(STAFF_ID, MONDAY, 60, make_hours(), [], granularity_minutes=60)
        assert times == ["09:00", "10:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00"]

    def test_last_start_fits_before_closing(self):
        times = available_start_times(STAFF_ID, MONDAY, 90, make_hours(), [])
        assert times[-1] == "15:30"

    def test_break_is_skipped(self):
        hours = make_hours(break_start="12:00", break_end="13:00")
        times = available_start_times(STAFF_ID, MONDAY, 60, hours, [])
        assert "11:00" in times
        assert "11:30" not in times
        assert "12:00" not in times
        assert "12:30" not in times
        assert "13:00" in times

    def test_existing_booking_is_skipped(self):
        existing = [make_appointment("APT-1", "10:00", 60, AppointmentStatus.CONFIRMED)]
        times = available_start_times(STAFF_ID, MONDAY, 30, make_hours(), existing)
        assert "09:30" in times
        assert "10:00" not in times
        assert "10:30" not in times
        assert "11:00" in times

    def test_cancelled_booking_frees_time(self):
        existing = [make_appointment("APT-1", "10:00", 60, AppointmentStatus.CANCELLED)]
        times = available_start_times(STAFF_ID, MONDAY, 30, make_hours(), existing)
        assert "10:00" in times

    def test_rescheduled_appointment_ignores_itself(self):
        existing = [make_appointment("APT-1", "10:00", 60)]
        times = available_start_times(
            STAFF_ID, MONDAY, 60, make_hours(), existing, exclude_appointment_id="APT-1",
        )
        assert "10:00" in times
        assert "10:30" in times

    def test_day_off_has_nothing(self):
        assert available_start_times(STAFF_ID, MONDAY, 30, make_hours(is_working=False), []) == []

    def test_non_positive_duration_has_nothing(self):
        assert available_start_times(STAFF_ID, MONDAY, 0, make_hours(), []) == []

    def test_longer_than_working_day_has_nothing(self):
        assert available_start_times(STAFF_ID, MONDAY, 600, make_hours(), []) == []

    def test_not_before_same_day(self):
        now = dt.datetime.combine(MONDAY, dt.time(14, 10))
        times = available_start_times(STAFF_ID, MONDAY, 30, make_hours(), [], not_before=now)
        assert times[0] == "14:30"

    def test_not_before_on_past_day(self):
        now = dt.datetime.combine(MONDAY + dt.timedelta(days=1), dt.time(8, 0))
        assert available_start_times(STAFF_ID, MONDAY, 30, make_hours(), [], not_before=now) == []

    def test_not_before_on_earlier_day_has_no_effect(self):
        now = dt.datetime.combine(MONDAY - dt.timedelta(days=1), dt.time(20, 0))
        times = available_start_times(STAFF_ID, MONDAY, 30, make_hours(), [], not_before=now)
        assert times[0] == "09:00"

    def test_off_grid_opening_steps_from_opening(self):
        hours = make_hours(start_time="09:15", end_time="11:00")
        times = available_start_times(STAFF_ID, MONDAY, 30, hours, [])
        assert times == ["09:15", "09:45", "10:15"]

    def test_off_grid_opening_with_lead_time(self):
        hours = make_hours(start_time="09:15", end_time="11:00")
        now = dt.datetime.combine(MONDAY, dt.time(9, 20))
        times = available_start_times(STAFF_ID, MONDAY, 30, hours, [], not_before=now)
        assert times == ["09:45", "10:15"]


class TestNextAvailableSlot:
    def test_first_free_slot(self):
        existing = [make_appointment("APT-1", "09:00", 90)]
        assert next_available_slot(STAFF_ID, MONDAY, 45, make_hours(), existing) == ("10:30", "11:15")

    def test_full_day_returns_none(self):
        existing = [make_appointment("APT-1", "09:00", 480)]
        assert next_available_slot(STAFF_ID, MONDAY, 30, make_hours(), existing) is None


class TestDefaultSchedule:
    def test_weekdays_working_weekend_off(self):
        config = BookingConfig(
            default_day_start="09:00", default_day_end="17:00", default_working_days=5,
        )
        schedule = default_weekly_schedule("EMP-9", config)
        assert [h.day_of_week for h in schedule] == [1, 2, 3, 4, 5, 6, 7]
        assert [h.is_working for h in schedule] == [True] * 5 + [False] * 2
        assert schedule[0].start_time == "09:00"
        assert schedule[0].end_time == "17:00"
        assert all(h.staff_id == "EMP-9" for h in schedule)

    def test_working_hours_for_picks_weekday(self):
        schedule = [make_hours(day_of_week=1), make_hours(day_of_week=2, start_time="10:00")]
        assert working_hours_for(MONDAY + dt.timedelta(days=1), schedule).start_time == "10:00"

    def test_missing_weekday_is_day_off(self):
        schedule = [make_hours(day_of_week=1)]
        saturday = MONDAY + dt.timedelta(days=5)
        hours = working_hours_for(saturday, schedule)
        assert hours.day_of_week == 6
        assert not hours.is_working
