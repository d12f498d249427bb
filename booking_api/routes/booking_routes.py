from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_api.auth.dependencies import get_optional_identity, require_role
from booking_api.core.errors import database_unavailable
from booking_api.database import get_db
from booking_api.models.user import ROLE_DOCTOR, ROLE_PATIENT
from booking_api.schemas.booking import (
    BookingResponse,
    CreateBookingRequest,
    CreateBookingResponse,
    UpdateBookingRequest,
    UpdateBookingResponse,
)
from booking_api.services import booking_service
from booking_api.services.booking_state import Identity
from booking_api.services.notifications import Notifier, get_notifier

router = APIRouter(tags=['bookings'])


@router.post('', response_model=CreateBookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: CreateBookingRequest,
    identity: Identity = Depends(require_role(ROLE_PATIENT)),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        booking = booking_service.create_booking(db, identity, data, notifier)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return CreateBookingResponse(booking_id=booking.id)


@router.get('', response_model=list[BookingResponse])
def list_bookings(
    doctor_id: int | None = Query(default=None, alias='doctorId'),
    patient_id: int | None = Query(default=None, alias='patientId'),
    day: date | None = Query(default=None, alias='date'),
    booking_status: str | None = Query(default=None, alias='status'),
    identity: Identity | None = Depends(get_optional_identity),
    db: Session = Depends(get_db),
):
    try:
        return booking_service.list_bookings(
            db,
            identity=identity,
            doctor_id=doctor_id,
            patient_id=patient_id,
            day=day,
            status=booking_status,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('', response_model=UpdateBookingResponse)
def update_booking(
    data: UpdateBookingRequest,
    identity: Identity = Depends(require_role(ROLE_DOCTOR, ROLE_PATIENT)),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        booking = booking_service.update_booking(db, identity, data, notifier)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return UpdateBookingResponse(status=booking.status, slot_start=booking.slot_start, slot_end=booking.slot_end)
