"""Doctor weekly availability: weekday -> enabled flag and time windows."""

from datetime import date
from enum import Enum

from pydantic import ConfigDict, Field, field_validator, model_validator

from booking_api.core.schema import CamelModel
from booking_api.services.time_slots import is_clock_12, to_minutes


class Weekday(str, Enum):
    MONDAY = 'monday'
    TUESDAY = 'tuesday'
    WEDNESDAY = 'wednesday'
    THURSDAY = 'thursday'
    FRIDAY = 'friday'
    SATURDAY = 'saturday'
    SUNDAY = 'sunday'

    @classmethod
    def for_date(cls, value: date) -> 'Weekday':
        return list(cls)[value.weekday()]


class TimeWindow(CamelModel):
    start_time: str
    end_time: str

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_clock(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not is_clock_12(normalized):
            raise ValueError('Times must use the h:mm AM/PM format.')
        return normalized

    @model_validator(mode='after')
    def validate_order(self) -> 'TimeWindow':
        if self.end_minutes <= self.start_minutes:
            raise ValueError('A time window must end after it starts.')
        return self

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end_time)

    def contains_offset(self, offset_minutes: int) -> bool:
        return self.start_minutes <= offset_minutes < self.end_minutes


class DayAvailability(CamelModel):
    available: bool = False
    time_slots: list[TimeWindow] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_windows(self) -> 'DayAvailability':
        if not self.available and self.time_slots:
            raise ValueError('Time windows are not allowed on a day marked unavailable.')
        return self

    @property
    def is_open(self) -> bool:
        return self.available and bool(self.time_slots)

    def covers_offset(self, offset_minutes: int) -> bool:
        return any(window.contains_offset(offset_minutes) for window in self.time_slots)

    def covers_range(self, start_minutes: int, end_minutes: int) -> bool:
        """True when ``[start, end)`` sits entirely inside a single window."""
        return any(
            window.start_minutes <= start_minutes and end_minutes <= window.end_minutes
            for window in self.time_slots
        )

    def time_range_label(self) -> str:
        if not self.is_open:
            return 'Not available'
        return f'{self.time_slots[0].start_time} to {self.time_slots[-1].end_time}'


class WeeklyAvailability(CamelModel):
    model_config = ConfigDict(extra='forbid')

    monday: DayAvailability | None = None
    tuesday: DayAvailability | None = None
    wednesday: DayAvailability | None = None
    thursday: DayAvailability | None = None
    friday: DayAvailability | None = None
    saturday: DayAvailability | None = None
    sunday: DayAvailability | None = None

    def for_weekday(self, weekday: Weekday) -> DayAvailability | None:
        return getattr(self, weekday.value)

    def for_date(self, value: date) -> DayAvailability | None:
        return self.for_weekday(Weekday.for_date(value))

    def to_document(self) -> dict:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


def load_weekly_availability(document: dict | None) -> WeeklyAvailability:
    """Parse the stored JSON document; a doctor without one is unavailable every day."""
    if not document:
        return WeeklyAvailability()
    return WeeklyAvailability.model_validate(document)
