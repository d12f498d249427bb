from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_api.auth.dependencies import require_role
from booking_api.core.errors import database_unavailable
from booking_api.core.schema import CamelModel
from booking_api.database import get_db
from booking_api.models.user import ROLE_DOCTOR
from booking_api.services import availability
from booking_api.services.availability import DaySummary, Slot
from booking_api.services.booking_service import get_doctor
from booking_api.services.booking_state import Identity
from booking_api.services.weekly_availability import Weekday, WeeklyAvailability, load_weekly_availability

router = APIRouter(tags=['doctors'])


class AvailabilityResponse(CamelModel):
    available: bool
    date: date
    day_of_week: str
    time_slots: list[Slot]
    weekly_schedule: list[DaySummary]


@router.get('/{doctor_id}/availability', response_model=AvailabilityResponse)
def get_availability(
    doctor_id: int,
    target_date: date | None = Query(default=None, alias='date'),
    block_pending: bool = Query(default=True, alias='blockPending'),
    db: Session = Depends(get_db),
):
    target_date = target_date or date.today()

    try:
        doctor = get_doctor(db, doctor_id)
        day = load_weekly_availability(doctor.weekly_availability).for_date(target_date)
        time_slots = availability.resolve(db, doctor, target_date, block_pending=block_pending, now=datetime.now())
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return AvailabilityResponse(
        available=bool(day and day.is_open),
        date=target_date,
        day_of_week=Weekday.for_date(target_date).value.capitalize(),
        time_slots=time_slots,
        weekly_schedule=availability.weekly_schedule(doctor.weekly_availability, date.today()),
    )


@router.put('/me/availability', response_model=WeeklyAvailability, response_model_exclude_none=True)
def update_my_availability(
    data: WeeklyAvailability,
    identity: Identity = Depends(require_role(ROLE_DOCTOR)),
    db: Session = Depends(get_db),
):
    try:
        doctor = get_doctor(db, identity.user_id)
        doctor.weekly_availability = data.to_document()
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return data
