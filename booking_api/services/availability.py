"""Resolve a doctor's bookable 15-minute slots for one calendar day."""

from datetime import date, datetime, time, timedelta
from typing import Iterable

from sqlalchemy.orm import Session

from booking_api.core.schema import CamelModel
from booking_api.models.booking import Booking
from booking_api.models.user import User
from booking_api.services.booking_state import BookingStatus
from booking_api.services.time_slots import (
    enumerate_day_slots,
    minutes_since_midnight,
    to_minutes,
)
from booking_api.services.weekly_availability import DayAvailability, Weekday, load_weekly_availability

SCHEDULE_SUMMARY_DAYS = 7


class Slot(CamelModel):
    time: str
    start_offset_minutes: int
    available: bool
    booked: bool


class DaySummary(CamelModel):
    date: date
    day: str
    day_number: int
    available: bool
    time_range: str


def blocking_statuses(block_pending: bool) -> set[str]:
    statuses = {BookingStatus.BOOKED.value}
    if block_pending:
        statuses.add(BookingStatus.PENDING.value)
    return statuses


def taken_offsets(bookings: Iterable[Booking], target_date: date, block_pending: bool) -> set[int]:
    """Minute offsets on ``target_date`` covered by bookings that hold their slots."""
    statuses = blocking_statuses(block_pending)
    grid = {to_minutes(clock) for clock in enumerate_day_slots()}
    taken: set[int] = set()

    for booking in bookings:
        if booking.status not in statuses:
            continue
        start = minutes_since_midnight(booking.slot_start, target_date)
        end = minutes_since_midnight(booking.slot_end, target_date)
        taken.update(offset for offset in grid if start <= offset < end)

    return taken


def build_day_slots(
    day: DayAvailability | None,
    target_date: date,
    bookings: Iterable[Booking],
    block_pending: bool = True,
    now: datetime | None = None,
) -> list[Slot]:
    """Mark every slot of the day grid as available and/or booked.

    Returns an empty list when the weekday is switched off or has no windows;
    otherwise the whole grid, so callers can tell "outside hours" (``available``
    false, ``booked`` false) apart from "taken" (``booked`` true).
    """
    if day is None or not day.is_open:
        return []

    now = now or datetime.now()
    taken = taken_offsets(bookings, target_date, block_pending)
    slots: list[Slot] = []

    for clock in enumerate_day_slots():
        offset = to_minutes(clock)
        in_hours = day.covers_offset(offset)
        starts_at = datetime.combine(target_date, time.min) + timedelta(minutes=offset)
        booked = offset in taken

        slots.append(
            Slot(
                time=clock,
                start_offset_minutes=offset,
                available=in_hours and not booked and starts_at > now,
                booked=booked,
            )
        )

    return slots


def bookings_for_day(db: Session, doctor_id: int, target_date: date, statuses: set[str]) -> list[Booking]:
    day_start = datetime.combine(target_date, time.min)
    day_end = day_start + timedelta(days=1)
    return db.query(Booking).filter(
        Booking.doctor_id == doctor_id,
        Booking.status.in_(statuses),
        Booking.slot_start < day_end,
        Booking.slot_end > day_start,
    ).all()


def resolve(
    db: Session,
    doctor: User,
    target_date: date,
    block_pending: bool = True,
    now: datetime | None = None,
) -> list[Slot]:
    day = load_weekly_availability(doctor.weekly_availability).for_date(target_date)
    if day is None or not day.is_open:
        return []

    bookings = bookings_for_day(db, doctor.id, target_date, blocking_statuses(block_pending))
    return build_day_slots(day, target_date, bookings, block_pending=block_pending, now=now)


def weekly_schedule(document: dict | None, start: date, days: int = SCHEDULE_SUMMARY_DAYS) -> list[DaySummary]:
    weekly = load_weekly_availability(document)
    summary: list[DaySummary] = []

    for index in range(days):
        current = start + timedelta(days=index)
        day = weekly.for_date(current)
        summary.append(
            DaySummary(
                date=current,
                day=Weekday.for_date(current).value[:3].upper(),
                day_number=current.day,
                available=bool(day and day.available),
                time_range=day.time_range_label() if day else 'Not available',
            )
        )

    return summary
