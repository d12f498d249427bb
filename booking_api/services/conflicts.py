from datetime import datetime

from sqlalchemy.orm import Session

from booking_api.models.booking import Booking
from booking_api.services.booking_state import BookingStatus


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    # Half-open intervals: touching endpoints do not overlap.
    return start_a < end_b and start_b < end_a


def find_conflict(
    db: Session,
    doctor_id: int,
    start: datetime,
    end: datetime,
    exclude_booking_id: int | None = None,
) -> Booking | None:
    query = db.query(Booking).filter(
        Booking.doctor_id == doctor_id,
        Booking.status == BookingStatus.BOOKED.value,
        Booking.slot_start < end,
        Booking.slot_end > start,
    )
    if exclude_booking_id is not None:
        query = query.filter(Booking.id != exclude_booking_id)
    return query.first()


def has_conflict(
    db: Session,
    doctor_id: int,
    start: datetime,
    end: datetime,
    exclude_booking_id: int | None = None,
) -> bool:
    """True when a booked appointment of this doctor overlaps ``[start, end)``."""
    return find_conflict(db, doctor_id, start, end, exclude_booking_id) is not None
