"""Clock-string helpers and the 15-minute day grid."""

import logging
import re
from datetime import date, datetime, time, timedelta

from booking_api.core.config import SLOT_MINUTES


logger = logging.getLogger(__name__)

DEFAULT_24_HOUR = '09:00'
MINUTES_PER_DAY = 24 * 60

CLOCK_12_PATTERN = re.compile(r'^(1[0-2]|0?[1-9]):([0-5]\d) ([AaPp][Mm])$')


def is_clock_12(value: str) -> bool:
    return bool(CLOCK_12_PATTERN.match(value.strip())) if isinstance(value, str) else False


def to_24_hour(clock_12: str) -> str:
    """Convert ``"h:mm AM/PM"`` to ``"HH:MM"``.

    An hour of 12 is read as 00 before the PM offset is added, so ``12:xx AM``
    is just after midnight and ``12:xx PM`` just after noon. Anything that cannot
    be parsed falls back to ``09:00``.
    """
    if not clock_12 or not isinstance(clock_12, str):
        logger.warning('Invalid time format: %r', clock_12)
        return DEFAULT_24_HOUR

    parts = clock_12.strip().split(' ')
    if len(parts) != 2 or not parts[1]:
        logger.warning('Invalid time format - missing time or modifier: %r', clock_12)
        return DEFAULT_24_HOUR

    clock, modifier = parts
    hours, _, minutes = clock.partition(':')
    if not hours.isdigit() or not minutes.isdigit():
        logger.warning('Invalid time format - missing hours or minutes: %r', clock_12)
        return DEFAULT_24_HOUR

    hour = int(hours)
    if hour == 12:
        hour = 0
    if modifier.upper() == 'PM':
        hour += 12

    return f'{hour:02d}:{minutes.zfill(2)}'


def to_minutes(clock_12: str) -> int:
    """Minutes after midnight for a 12-hour clock string."""
    hours, minutes = to_24_hour(clock_12).split(':')
    return int(hours) * 60 + int(minutes)


def to_time(clock_12: str) -> time:
    hours, minutes = to_24_hour(clock_12).split(':')
    return time(int(hours), int(minutes))


def format_clock_12(value: datetime | time) -> str:
    """Render ``9:05 AM`` style text, without a leading zero on the hour."""
    hour = value.hour % 12 or 12
    suffix = 'AM' if value.hour < 12 else 'PM'
    return f'{hour}:{value.minute:02d} {suffix}'


def minutes_to_clock_12(offset_minutes: int) -> str:
    return format_clock_12(time(offset_minutes // 60, offset_minutes % 60))


def enumerate_day_slots(step_minutes: int = SLOT_MINUTES) -> list[str]:
    """Every slot start of a day, ``12:00 AM`` through the last step before midnight."""
    return [minutes_to_clock_12(offset) for offset in range(0, MINUTES_PER_DAY, step_minutes)]


def combine_slot(slot_date: date, clock_12: str) -> datetime:
    return datetime.combine(slot_date, to_time(clock_12))


def minutes_since_midnight(value: datetime, day: date) -> int:
    """Offset of ``value`` from the start of ``day``; may be negative or exceed a day."""
    delta = value - datetime.combine(day, time.min)
    return int(delta.total_seconds() // 60)


def slot_end(slot_start: datetime, blocks: int = 1) -> datetime:
    return slot_start + timedelta(minutes=SLOT_MINUTES * blocks)
