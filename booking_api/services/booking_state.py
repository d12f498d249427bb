"""Lifecycle of a booking: who may move it and from which state."""

from dataclasses import dataclass
from enum import Enum

from booking_api.core.errors import BookingValidationError, PermissionDeniedError
from booking_api.models.user import ROLE_DOCTOR, ROLE_PATIENT


class BookingStatus(str, Enum):
    PENDING = 'pending'
    BOOKED = 'booked'
    REJECTED = 'rejected'
    CANCELLED = 'cancelled'


class BookingAction(str, Enum):
    ACCEPT = 'accept'
    REJECT = 'reject'
    CANCEL = 'cancel'


class BookingType(str, Enum):
    WALK_IN = 'walk-in'
    HOME_VISIT = 'home-visit'


class VisitType(str, Enum):
    FIRST_TIME = 'first-time'
    FOLLOW_UP = 'follow-up'


class BookingFor(str, Enum):
    MYSELF = 'myself'
    SOMEONE_ELSE = 'someone-else'


@dataclass(frozen=True)
class Identity:
    """The authenticated caller: a user id and the role its token was issued for."""

    user_id: int
    role: str


ALLOWED_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.BOOKED, BookingStatus.REJECTED, BookingStatus.CANCELLED},
    BookingStatus.BOOKED: {BookingStatus.CANCELLED},
    BookingStatus.REJECTED: set(),
    BookingStatus.CANCELLED: set(),
}

ACTION_TARGETS = {
    BookingAction.ACCEPT: BookingStatus.BOOKED,
    BookingAction.REJECT: BookingStatus.REJECTED,
    BookingAction.CANCEL: BookingStatus.CANCELLED,
}

SOURCE_STATE_ERRORS = {
    BookingAction.ACCEPT: 'Only pending bookings can be accepted',
    BookingAction.REJECT: 'Only pending bookings can be rejected',
    BookingAction.CANCEL: 'Only pending or booked bookings can be cancelled',
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def is_owner_doctor(booking, identity: Identity) -> bool:
    return identity.role == ROLE_DOCTOR and booking.doctor_id == identity.user_id


def is_owner_patient(booking, identity: Identity) -> bool:
    return identity.role == ROLE_PATIENT and booking.patient_id == identity.user_id


def check_actor(booking, action: BookingAction, identity: Identity) -> None:
    if is_owner_doctor(booking, identity):
        return
    if action == BookingAction.CANCEL and is_owner_patient(booking, identity):
        return
    raise PermissionDeniedError('Not authorized for this booking')


def next_status(booking, action: BookingAction, identity: Identity) -> BookingStatus:
    """Validate ``action`` against the booking's owner and current state.

    Raises without touching the booking when the caller does not own it or the
    current state does not allow the move. Accepting an already booked request
    fails as well.
    """
    check_actor(booking, action, identity)

    target = ACTION_TARGETS[action]
    if not can_transition(BookingStatus(booking.status), target):
        raise BookingValidationError(SOURCE_STATE_ERRORS[action])

    return target
