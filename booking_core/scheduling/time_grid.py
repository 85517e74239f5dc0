"""
Time grid generation for the staff calendar.

Turns business-hour bounds into the ordered list of fixed-width slots the
calendar draws as rows. The closing hour only contributes its ``:00``
boundary line, so a 08-22 grid at 30 minutes has 29 slots ending at 22:00.

Usage:
    slots = build_grid(8, 22, 30)
    assert slots[-1].label == "22:00"
"""

import logging

from booking_core.schemas.calendar_schema import TimeSlot
from booking_core.utils import format_hour_label, format_time

logger = logging.getLogger(__name__)

DEFAULT_GRANULARITY_MINUTES = 30


def validate_grid_bounds(start_hour: int, end_hour: int, granularity_minutes: int) -> None:
    """Raise ValueError unless the bounds describe a drawable grid."""
    if not 0 <= start_hour < end_hour <= 24:
        raise ValueError(
            f"Grid hours must satisfy 0 <= start < end <= 24, got {start_hour} and {end_hour}"
        )
    if granularity_minutes <= 0 or 60 % granularity_minutes != 0:
        raise ValueError(
            f"Granularity must divide 60 evenly, got {granularity_minutes}"
        )


def build_grid(
    start_hour: int,
    end_hour: int,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> list[TimeSlot]:
    """Build the slot sequence from ``start_hour:00`` through ``end_hour:00`` inclusive."""
    validate_grid_bounds(start_hour, end_hour, granularity_minutes)

    slots: list[TimeSlot] = []
    for minutes in range(start_hour * 60, end_hour * 60 + 1, granularity_minutes):
        hour, minute = divmod(minutes, 60)
        is_hour = minute == 0
        slots.append(TimeSlot(
            hour=hour,
            minute=minute,
            is_hour=is_hour,
            label=format_time(minutes),
            display_label=format_hour_label(hour) if is_hour else "",
        ))

    logger.debug(
        "Built grid %02d:00-%02d:00 every %d min (%d slots)",
        start_hour, end_hour, granularity_minutes, len(slots),
    )
    return slots


def slot_count(start_hour: int, end_hour: int, granularity_minutes: int) -> int:
    """Number of slots ``build_grid`` returns for the same bounds."""
    validate_grid_bounds(start_hour, end_hour, granularity_minutes)
    return (end_hour - start_hour) * 60 // granularity_minutes + 1
