import logging
from datetime import date, datetime

from pydantic import ConfigDict, Field, field_validator, model_validator

from booking_api.core.config import MAX_BOOKING_NOTES_LENGTH
from booking_api.core.schema import CamelModel
from booking_api.services.acceptance import MAX_ACCEPT_BLOCKS
from booking_api.services.booking_state import BookingAction, BookingFor, BookingType, VisitType
from booking_api.services.time_slots import is_clock_12

logger = logging.getLogger(__name__)

GUEST_GENDERS = {'male', 'female', 'other', ''}


def parse_dob(value: str) -> date | None:
    """Accept ``DD/MM/YYYY`` or ``YYYY-MM-DD``; anything else is dropped."""
    text = value.strip()
    for pattern in ('%d/%m/%Y', '%Y-%m-%d'):
        try:
            return datetime.strptime(text, pattern).date()
        except ValueError:
            continue
    logger.debug('Ignoring unparseable date of birth %r', value)
    return None


class GuestPatient(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ''
    email: str = ''
    phone: str = ''
    gender: str = ''
    dob: date | None = None
    address: str = ''
    postal_code: str = ''
    city: str = ''

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator('gender')
    @classmethod
    def validate_gender(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in GUEST_GENDERS:
            raise ValueError('Gender must be male, female or other.')
        return normalized

    @field_validator('dob', mode='before')
    @classmethod
    def validate_dob(cls, value):
        if isinstance(value, str):
            return parse_dob(value) if value.strip() else None
        return value


class HomeVisitAddress(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    line1: str = ''
    line2: str = ''
    city: str = ''
    postal_code: str = ''
    landmark: str = ''
    full_text: str = ''

    @model_validator(mode='after')
    def fill_full_text(self) -> 'HomeVisitAddress':
        if not self.full_text:
            parts = [self.line1, self.line2, self.city, self.postal_code]
            self.full_text = ', '.join(part for part in parts if part)
        return self

    @property
    def is_complete(self) -> bool:
        return bool(self.full_text and self.city)


class CreateBookingRequest(CamelModel):
    doctor_id: int
    date: date
    time: str
    booking_type: BookingType = BookingType.WALK_IN
    visit_type: VisitType
    notes: str | None = None
    booking_for: BookingFor = BookingFor.MYSELF
    patient_details: GuestPatient | None = None
    home_visit_address: HomeVisitAddress | None = None

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not is_clock_12(normalized):
            raise ValueError('Time must use the h:mm AM/PM format.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_BOOKING_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_BOOKING_NOTES_LENGTH} characters or fewer.')

        return normalized


class UpdateBookingRequest(CamelModel):
    booking_id: int
    action: BookingAction
    accept_start: datetime | None = None
    accept_blocks: int | None = Field(default=None, ge=1, le=MAX_ACCEPT_BLOCKS)
    accept_slots: list[str] | None = None

    @field_validator('accept_slots')
    @classmethod
    def validate_accept_slots(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        normalized = [item.strip().upper() for item in value]
        if not all(is_clock_12(item) for item in normalized):
            raise ValueError('Selected slots must use the h:mm AM/PM format.')
        return normalized

    @model_validator(mode='after')
    def check_single_range_source(self) -> 'UpdateBookingRequest':
        if self.accept_slots is not None and (self.accept_start is not None or self.accept_blocks is not None):
            raise ValueError('Send either acceptSlots or acceptStart/acceptBlocks, not both.')
        return self


class PersonSummary(CamelModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    clinic_name: str | None = None
    clinic_address: str | None = None


class BookingResponse(CamelModel):
    id: int
    doctor: PersonSummary
    patient: PersonSummary
    date: date
    slot_start: datetime
    slot_end: datetime
    duration_minutes: int
    booking_type: str
    visit_type: str
    status: str
    notes: str | None = None
    booking_for: str
    guest_patient: dict | None = None
    home_visit_address: dict | None = None
    notify_email: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None


class CreateBookingResponse(CamelModel):
    booking_id: int


class UpdateBookingResponse(CamelModel):
    status: str
    slot_start: datetime
    slot_end: datetime
