"""Tests for configuration loading and validation."""

import dataclasses

import pytest

from booking_core.config import (
    AnalyticsConfig,
    AppConfig,
    BookingConfig,
    CalendarConfig,
    _validate_config,
)


def _with(config: AppConfig, section: str, **changes) -> AppConfig:
    return dataclasses.replace(config, **{section: dataclasses.replace(getattr(config, section), **changes)})


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_fixture_config_passes_validation(self, app_config):
        _validate_config(app_config)

    def test_sections_are_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            CalendarConfig().start_hour = 3

    @pytest.mark.parametrize("start,end", [(10, 10), (22, 8), (-1, 8), (8, 25)])
    def test_invalid_grid_hours(self, app_config, start, end):
        with pytest.raises(ValueError, match="CALENDAR_START_HOUR"):
            _validate_config(_with(app_config, "calendar", start_hour=start, end_hour=end))

    @pytest.mark.parametrize("granularity", [0, -15, 7, 45])
    def test_invalid_granularity(self, app_config, granularity):
        with pytest.raises(ValueError, match="CALENDAR_GRANULARITY_MINUTES"):
            _validate_config(_with(app_config, "calendar", granularity_minutes=granularity))

    def test_invalid_slot_height(self, app_config):
        with pytest.raises(ValueError, match="CALENDAR_SLOT_HEIGHT_PX"):
            _validate_config(_with(app_config, "calendar", slot_height_px=0))

    def test_invalid_out_of_range_policy(self, app_config):
        with pytest.raises(ValueError, match="CALENDAR_OUT_OF_RANGE_POLICY"):
            _validate_config(_with(app_config, "calendar", out_of_range_policy="hide"))

    def test_invalid_transition_policy(self, app_config):
        with pytest.raises(ValueError, match="STATUS_TRANSITION_POLICY"):
            _validate_config(_with(app_config, "booking", transition_policy="strict"))

    def test_negative_lead_time(self, app_config):
        with pytest.raises(ValueError, match="BOOKING_LEAD_TIME_MINUTES"):
            _validate_config(_with(app_config, "booking", lead_time_minutes=-5))

    def test_too_many_working_days(self, app_config):
        with pytest.raises(ValueError, match="DEFAULT_WORKING_DAYS"):
            _validate_config(_with(app_config, "booking", default_working_days=8))

    def test_default_day_reversed(self, app_config):
        with pytest.raises(ValueError, match="DEFAULT_DAY_START"):
            _validate_config(_with(app_config, "booking", default_day_start="18:00"))

    def test_top_services_limit(self, app_config):
        with pytest.raises(ValueError, match="TOP_SERVICES_LIMIT"):
            _validate_config(_with(app_config, "analytics", top_services_limit=0))

    def test_recent_bookings_limit(self, app_config):
        with pytest.raises(ValueError, match="RECENT_BOOKINGS_LIMIT"):
            _validate_config(_with(app_config, "analytics", recent_bookings_limit=0))

    def test_sections_can_be_built_directly(self):
        config = AppConfig(
            calendar=CalendarConfig(start_hour=6, end_hour=20, granularity_minutes=15),
            booking=BookingConfig(transition_policy="restricted"),
            analytics=AnalyticsConfig(top_services_limit=3),
        )
        _validate_config(config)
        assert config.calendar.granularity_minutes == 15

    def test_safe_int_parsing(self):
        from booking_core.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        from booking_core.config import _safe_int

        monkeypatch.setenv("BOOKING_CORE_TEST_INT", "thirty")
        with pytest.raises(ValueError, match="BOOKING_CORE_TEST_INT"):
            _safe_int("BOOKING_CORE_TEST_INT", "30")

    def test_safe_float_parsing(self):
        from booking_core.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)
