"""Staff working hours."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from booking_core.utils import format_time, parse_time


class WorkingHours(BaseModel):
    """
    One day of a staff member's weekly schedule.

    ``day_of_week`` is ISO numbered (Monday = 1, Sunday = 7). When
    ``is_working`` is false the time fields are ignored entirely.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    staff_id: Optional[str] = None
    day_of_week: int = Field(ge=1, le=7)
    is_working: bool = True
    start_time: str = "09:00"
    end_time: str = "17:00"
    break_start: Optional[str] = None
    break_end: Optional[str] = None

    @field_validator("start_time", "end_time", "break_start", "break_end")
    @classmethod
    def _normalize_time(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return format_time(parse_time(value))

    @model_validator(mode="after")
    def _check_intervals(self):
        if not self.is_working:
            return self
        if self.start_minutes >= self.end_minutes:
            raise ValueError(
                f"start_time {self.start_time} must be before end_time {self.end_time}"
            )
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError("break_start and break_end must be given together")
        if self.break_start is not None:
            b_start, b_end = parse_time(self.break_start), parse_time(self.break_end)
            if not self.start_minutes < b_start < b_end < self.end_minutes:
                raise ValueError(
                    f"Break {self.break_start}-{self.break_end} must lie strictly inside "
                    f"{self.start_time}-{self.end_time}"
                )
        return self

    @property
    def start_minutes(self) -> int:
        return parse_time(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time(self.end_time)

    @property
    def break_interval(self) -> Optional[tuple[int, int]]:
        if not self.is_working or self.break_start is None or self.break_end is None:
            return None
        return parse_time(self.break_start), parse_time(self.break_end)
