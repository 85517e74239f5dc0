"""
Centralized configuration with environment variable overrides.

Calendar geometry, booking rules, and analytics limits are all
configurable here. Nothing is hardcoded in scheduling or analytics logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from booking_core.logging_context import attach_request_id_filter

load_dotenv()

logger = logging.getLogger(__name__)

OUT_OF_RANGE_POLICIES = ("exclude", "clip", "keep")
TRANSITION_POLICIES = ("permissive", "restricted")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class CalendarConfig:
    """Geometry of the staff calendar grid."""

    start_hour: int = _safe_int("CALENDAR_START_HOUR", "8")
    end_hour: int = _safe_int("CALENDAR_END_HOUR", "22")
    granularity_minutes: int = _safe_int("CALENDAR_GRANULARITY_MINUTES", "30")
    slot_height_px: float = _safe_float("CALENDAR_SLOT_HEIGHT_PX", "30")
    out_of_range_policy: str = os.getenv("CALENDAR_OUT_OF_RANGE_POLICY", "exclude")


@dataclass(frozen=True)
class BookingConfig:
    """Rules applied when clients and staff create appointments."""

    transition_policy: str = os.getenv("STATUS_TRANSITION_POLICY", "permissive")
    lead_time_minutes: int = _safe_int("BOOKING_LEAD_TIME_MINUTES", "30")
    default_day_start: str = os.getenv("DEFAULT_DAY_START", "09:00")
    default_day_end: str = os.getenv("DEFAULT_DAY_END", "17:00")
    default_working_days: int = _safe_int("DEFAULT_WORKING_DAYS", "5")


@dataclass(frozen=True)
class AnalyticsConfig:
    """Limits and labels for the statistics dashboard."""

    top_services_limit: int = _safe_int("TOP_SERVICES_LIMIT", "5")
    recent_bookings_limit: int = _safe_int("RECENT_BOOKINGS_LIMIT", "5")
    unknown_service_label: str = os.getenv("UNKNOWN_SERVICE_LABEL", "Unknown Service")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "booking-core")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    cal = config.calendar
    if not 0 <= cal.start_hour < cal.end_hour <= 24:
        raise ValueError(
            "CALENDAR_START_HOUR and CALENDAR_END_HOUR must satisfy "
            f"0 <= start < end <= 24, got {cal.start_hour} and {cal.end_hour}"
        )
    if cal.granularity_minutes <= 0 or 60 % cal.granularity_minutes != 0:
        raise ValueError(
            "CALENDAR_GRANULARITY_MINUTES must divide 60 evenly, "
            f"got {cal.granularity_minutes}"
        )
    if cal.slot_height_px <= 0:
        raise ValueError(
            f"CALENDAR_SLOT_HEIGHT_PX must be > 0, got {cal.slot_height_px}"
        )
    if cal.out_of_range_policy not in OUT_OF_RANGE_POLICIES:
        raise ValueError(
            f"CALENDAR_OUT_OF_RANGE_POLICY must be one of {OUT_OF_RANGE_POLICIES}, "
            f"got {cal.out_of_range_policy!r}"
        )

    booking = config.booking
    if booking.transition_policy not in TRANSITION_POLICIES:
        raise ValueError(
            f"STATUS_TRANSITION_POLICY must be one of {TRANSITION_POLICIES}, "
            f"got {booking.transition_policy!r}"
        )
    if booking.lead_time_minutes < 0:
        raise ValueError(
            f"BOOKING_LEAD_TIME_MINUTES must be >= 0, got {booking.lead_time_minutes}"
        )
    if not 0 <= booking.default_working_days <= 7:
        raise ValueError(
            f"DEFAULT_WORKING_DAYS must be between 0 and 7, got {booking.default_working_days}"
        )
    if booking.default_day_start >= booking.default_day_end:
        raise ValueError(
            "DEFAULT_DAY_START must be before DEFAULT_DAY_END, "
            f"got {booking.default_day_start} and {booking.default_day_end}"
        )

    analytics = config.analytics
    if analytics.top_services_limit < 1:
        raise ValueError(
            f"TOP_SERVICES_LIMIT must be >= 1, got {analytics.top_services_limit}"
        )
    if analytics.recent_bookings_limit < 1:
        raise ValueError(
            f"RECENT_BOOKINGS_LIMIT must be >= 1, got {analytics.recent_bookings_limit}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] [%(request_id)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        attach_request_id_filter(handler)
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
