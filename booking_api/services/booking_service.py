"""Create, query and transition bookings."""

import logging
from datetime import date, datetime, time, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from booking_api.core import config
from booking_api.core.errors import (
    BookingConflictError,
    BookingValidationError,
    NotFoundError,
)
from booking_api.models.booking import Booking
from booking_api.models.user import ROLE_DOCTOR, ROLE_PATIENT, User
from booking_api.schemas.booking import CreateBookingRequest, UpdateBookingRequest
from booking_api.services import notifications
from booking_api.services.acceptance import check_within_schedule, expand, selection_to_start_and_blocks
from booking_api.services.booking_state import (
    BookingAction,
    BookingFor,
    BookingStatus,
    BookingType,
    Identity,
    next_status,
)
from booking_api.services.conflicts import find_conflict
from booking_api.services.time_slots import combine_slot, slot_end
from booking_api.services.weekly_availability import load_weekly_availability

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.BOOKED.value)


def get_doctor(db: Session, doctor_id: int) -> User:
    doctor = db.query(User).filter(User.id == doctor_id, User.role == ROLE_DOCTOR).first()
    if doctor is None:
        raise NotFoundError('Doctor not found')
    return doctor


def get_patient(db: Session, patient_id: int) -> User:
    patient = db.query(User).filter(User.id == patient_id, User.role == ROLE_PATIENT).first()
    if patient is None:
        raise NotFoundError('Patient not found')
    return patient


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None:
        raise NotFoundError('Booking not found')
    return booking


def validate_requested_slot(doctor: User, slot_start: datetime, now: datetime) -> None:
    """Horizon, past-time, quantum and weekly-schedule checks for a new request."""
    today = now.date()
    last_bookable = today + timedelta(days=config.BOOKING_HORIZON_DAYS)
    if slot_start.date() < today or slot_start.date() > last_bookable:
        raise BookingValidationError(f'Bookings allowed only within next {config.BOOKING_HORIZON_DAYS} days')

    if slot_start < now:
        raise BookingValidationError('Cannot book past time')

    if slot_start.minute % config.SLOT_MINUTES != 0:
        raise BookingValidationError('Bookings must start on 15-minute boundaries')

    day = load_weekly_availability(doctor.weekly_availability).for_date(slot_start.date())
    if day is None or not day.is_open:
        raise BookingValidationError('Doctor not available on selected day')

    start_minutes = slot_start.hour * 60 + slot_start.minute
    if not day.covers_range(start_minutes, start_minutes + config.SLOT_MINUTES):
        raise BookingValidationError('Selected time is outside doctor schedule')


def create_booking(
    db: Session,
    identity: Identity,
    data: CreateBookingRequest,
    notifier: notifications.Notifier,
    now: datetime | None = None,
) -> Booking:
    now = now or datetime.now()
    doctor = get_doctor(db, data.doctor_id)
    patient = get_patient(db, identity.user_id)

    slot_start = combine_slot(data.date, data.time)
    validate_requested_slot(doctor, slot_start, now)

    home_visit_address = None
    if data.booking_type == BookingType.HOME_VISIT:
        if data.home_visit_address is None or not data.home_visit_address.is_complete:
            raise BookingValidationError('Home visit address (at least full address and city) is required')
        home_visit_address = data.home_visit_address.model_dump(mode='json', by_alias=True)

    guest_patient = None
    notify_email = patient.email or ''
    if data.booking_for == BookingFor.SOMEONE_ELSE:
        if data.patient_details is None or not data.patient_details.name:
            raise BookingValidationError('Patient name is required when booking for someone else')
        guest_patient = data.patient_details.model_dump(mode='json', by_alias=True)
        notify_email = data.patient_details.email

    end = slot_end(slot_start)

    already_requested = db.query(Booking.id).filter(
        Booking.doctor_id == doctor.id,
        Booking.slot_start == slot_start,
        Booking.status.in_(ACTIVE_STATUSES),
    ).first()
    if already_requested:
        raise BookingConflictError('This slot is already booked')

    if find_conflict(db, doctor.id, slot_start, end) is not None:
        raise BookingConflictError('Selected time overlaps an existing booking')

    booking = Booking(
        doctor_id=doctor.id,
        patient_id=patient.id,
        date=slot_start.date(),
        slot_start=slot_start,
        slot_end=end,
        booking_type=data.booking_type.value,
        visit_type=data.visit_type.value,
        notes=data.notes,
        booking_for=data.booking_for.value,
        guest_patient=guest_patient,
        home_visit_address=home_visit_address,
        notify_email=notify_email,
        status=BookingStatus.PENDING.value,
        created_by='patient',
    )

    try:
        db.add(booking)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning('Concurrent request for doctor %s at %s rejected', doctor.id, slot_start)
        raise BookingConflictError('This slot is already booked') from exc

    db.refresh(booking)
    logger.info('Booking %s requested by patient %s for doctor %s at %s', booking.id, patient.id, doctor.id, slot_start)

    notifications.notify_booking(notifier, notifications.request_notices, booking)
    return booking


def list_bookings(
    db: Session,
    identity: Identity | None = None,
    doctor_id: int | None = None,
    patient_id: int | None = None,
    day: date | None = None,
    status: str | None = None,
) -> list[Booking]:
    if doctor_id is None and identity is not None and identity.role == ROLE_DOCTOR:
        doctor_id = identity.user_id

    query = db.query(Booking).options(joinedload(Booking.doctor), joinedload(Booking.patient))

    if doctor_id is not None:
        query = query.filter(Booking.doctor_id == doctor_id)
    if patient_id is not None:
        query = query.filter(Booking.patient_id == patient_id)
    if status:
        try:
            query = query.filter(Booking.status == BookingStatus(status.strip().lower()).value)
        except ValueError as exc:
            raise BookingValidationError('Invalid status filter') from exc
    if day is not None:
        day_start = datetime.combine(day, time.min)
        query = query.filter(Booking.slot_start >= day_start, Booking.slot_start < day_start + timedelta(days=1))

    return query.order_by(Booking.slot_start.asc()).limit(config.MAX_BOOKING_RESULTS).all()


def lock_doctor_calendar(db: Session, doctor_id: int) -> None:
    # Serialises concurrent accepts for one doctor where the database supports row locks.
    db.query(User.id).filter(User.id == doctor_id).with_for_update().first()


def accept_booking(
    db: Session,
    booking: Booking,
    identity: Identity,
    data: UpdateBookingRequest,
    notifier: notifications.Notifier,
) -> Booking:
    target = next_status(booking, BookingAction.ACCEPT, identity)

    requested_start, requested_blocks = data.accept_start, data.accept_blocks
    if data.accept_slots is not None:
        requested_start, requested_blocks = selection_to_start_and_blocks(booking.slot_start.date(), data.accept_slots)

    accepted = expand(booking, requested_start, requested_blocks)

    if config.ENFORCE_ACCEPT_WITHIN_SCHEDULE:
        day = load_weekly_availability(booking.doctor.weekly_availability).for_date(accepted.start.date())
        check_within_schedule(day, accepted)

    lock_doctor_calendar(db, booking.doctor_id)
    if find_conflict(db, booking.doctor_id, accepted.start, accepted.end, exclude_booking_id=booking.id):
        raise BookingConflictError('Selected range overlaps an existing booking')

    booking.slot_start = accepted.start
    booking.slot_end = accepted.end
    booking.date = accepted.start.date()
    booking.status = target.value

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise BookingConflictError('Another request already holds the selected start time') from exc

    db.refresh(booking)
    logger.info(
        'Booking %s accepted by doctor %s for %s - %s', booking.id, identity.user_id, accepted.start, accepted.end
    )

    notifications.notify_booking(notifier, notifications.confirmation_notices, booking)
    return booking


def _set_status(db: Session, booking: Booking, identity: Identity, action: BookingAction) -> Booking:
    target = next_status(booking, action, identity)
    booking.status = target.value
    db.commit()
    db.refresh(booking)
    logger.info('Booking %s %s by %s %s', booking.id, target.value, identity.role, identity.user_id)
    return booking


def reject_booking(db: Session, booking: Booking, identity: Identity) -> Booking:
    return _set_status(db, booking, identity, BookingAction.REJECT)


def cancel_booking(db: Session, booking: Booking, identity: Identity) -> Booking:
    return _set_status(db, booking, identity, BookingAction.CANCEL)


def update_booking(
    db: Session,
    identity: Identity,
    data: UpdateBookingRequest,
    notifier: notifications.Notifier,
) -> Booking:
    booking = get_booking(db, data.booking_id)

    if data.action == BookingAction.ACCEPT:
        return accept_booking(db, booking, identity, data, notifier)
    if data.action == BookingAction.REJECT:
        return reject_booking(db, booking, identity)
    return cancel_booking(db, booking, identity)
