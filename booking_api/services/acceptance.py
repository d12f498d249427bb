"""Turn a doctor's acceptance request into the authoritative reserved interval."""

from dataclasses import dataclass
from datetime import date, datetime

from booking_api.core.config import HOME_VISIT_MIN_BLOCKS, SLOT_MINUTES
from booking_api.core.errors import BookingValidationError
from booking_api.services.booking_state import BookingType
from booking_api.services.time_slots import (
    MINUTES_PER_DAY,
    combine_slot,
    minutes_since_midnight,
    slot_end,
    to_minutes,
)
from booking_api.services.weekly_availability import DayAvailability

MAX_ACCEPT_BLOCKS = MINUTES_PER_DAY // SLOT_MINUTES


@dataclass(frozen=True)
class AcceptedRange:
    start: datetime
    end: datetime

    @property
    def blocks(self) -> int:
        return int((self.end - self.start).total_seconds() // 60) // SLOT_MINUTES


def are_contiguous(times: list[str]) -> bool:
    """True when the clock strings, once sorted, are exactly one slot apart.

    Zero or one selected slot counts as contiguous. The doctor's planner and the
    acceptance endpoint both go through this check.
    """
    offsets = sorted(to_minutes(value) for value in times)
    return all(later - earlier == SLOT_MINUTES for earlier, later in zip(offsets, offsets[1:]))


def selection_to_start_and_blocks(slot_date: date, times: list[str]) -> tuple[datetime, int]:
    if not times:
        raise BookingValidationError('Select at least one slot to accept')
    if not are_contiguous(times):
        raise BookingValidationError('Selected slots must be contiguous 15-minute blocks')

    first = min(times, key=to_minutes)
    return combine_slot(slot_date, first), len(times)


def normalize_accept_start(value: datetime) -> datetime:
    """Bring an offset-aware instant onto the local wall clock; naive values pass through."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(second=0, microsecond=0)


def expand(booking, requested_start: datetime | None = None, requested_blocks: int | None = None) -> AcceptedRange:
    """Compute ``[start, start + 15 * blocks)`` for accepting ``booking``.

    Defaults to the originally requested slot and a single block. The start must
    sit on the slot grid and the range may not exceed one day. Home visits need
    at least ``HOME_VISIT_MIN_BLOCKS`` blocks.
    """
    start = normalize_accept_start(requested_start) if requested_start else booking.slot_start
    blocks = 1 if requested_blocks is None else requested_blocks

    if not 1 <= blocks <= MAX_ACCEPT_BLOCKS:
        raise BookingValidationError(
            f'acceptBlocks must be between 1 and {MAX_ACCEPT_BLOCKS} 15-minute blocks'
        )

    if start.minute % SLOT_MINUTES != 0:
        raise BookingValidationError('acceptStart must be on a 15-minute boundary')

    if booking.booking_type == BookingType.HOME_VISIT.value and blocks < HOME_VISIT_MIN_BLOCKS:
        raise BookingValidationError(
            f'Home visit requires at least {HOME_VISIT_MIN_BLOCKS * SLOT_MINUTES} minutes '
            f'({HOME_VISIT_MIN_BLOCKS} blocks)'
        )

    return AcceptedRange(start=start, end=slot_end(start, blocks))


def check_within_schedule(day: DayAvailability | None, accepted: AcceptedRange) -> None:
    """Every block of the accepted range must sit inside one of the weekday's windows."""
    if day is None or not day.is_open:
        raise BookingValidationError('Doctor not available on selected day')

    start = minutes_since_midnight(accepted.start, accepted.start.date())
    end = minutes_since_midnight(accepted.end, accepted.start.date())

    for offset in range(start, end, SLOT_MINUTES):
        if not day.covers_range(offset, offset + SLOT_MINUTES):
            raise BookingValidationError('Selected range is outside doctor schedule')
