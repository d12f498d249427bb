from types import SimpleNamespace

import pytest

from booking_api.core.errors import BookingValidationError, PermissionDeniedError
from booking_api.services.booking_state import (
    BookingAction,
    BookingStatus,
    Identity,
    can_transition,
    next_status,
)

DOCTOR = Identity(user_id=1, role='doctor')
PATIENT = Identity(user_id=2, role='patient')
STRANGER_DOCTOR = Identity(user_id=3, role='doctor')
STRANGER_PATIENT = Identity(user_id=4, role='patient')


def _booking(status: str):
    return SimpleNamespace(doctor_id=1, patient_id=2, status=status)


@pytest.mark.parametrize(
    ('current', 'target', 'allowed'),
    [
        (BookingStatus.PENDING, BookingStatus.BOOKED, True),
        (BookingStatus.PENDING, BookingStatus.REJECTED, True),
        (BookingStatus.PENDING, BookingStatus.CANCELLED, True),
        (BookingStatus.BOOKED, BookingStatus.CANCELLED, True),
        (BookingStatus.BOOKED, BookingStatus.BOOKED, False),
        (BookingStatus.BOOKED, BookingStatus.REJECTED, False),
        (BookingStatus.REJECTED, BookingStatus.BOOKED, False),
        (BookingStatus.CANCELLED, BookingStatus.PENDING, False),
    ],
)
def test_can_transition(current: BookingStatus, target: BookingStatus, allowed: bool) -> None:
    assert can_transition(current, target) is allowed


@pytest.mark.parametrize(
    ('action', 'expected'),
    [
        (BookingAction.ACCEPT, BookingStatus.BOOKED),
        (BookingAction.REJECT, BookingStatus.REJECTED),
        (BookingAction.CANCEL, BookingStatus.CANCELLED),
    ],
)
def test_owning_doctor_can_move_pending_booking(action: BookingAction, expected: BookingStatus) -> None:
    assert next_status(_booking('pending'), action, DOCTOR) == expected


def test_accepting_twice_fails() -> None:
    with pytest.raises(BookingValidationError) as exception_info:
        next_status(_booking('booked'), BookingAction.ACCEPT, DOCTOR)

    assert exception_info.value.message == 'Only pending bookings can be accepted'


@pytest.mark.parametrize('terminal', ['rejected', 'cancelled'])
def test_terminal_states_cannot_be_cancelled(terminal: str) -> None:
    with pytest.raises(BookingValidationError):
        next_status(_booking(terminal), BookingAction.CANCEL, DOCTOR)


def test_owning_patient_may_only_cancel() -> None:
    assert next_status(_booking('booked'), BookingAction.CANCEL, PATIENT) == BookingStatus.CANCELLED

    with pytest.raises(PermissionDeniedError):
        next_status(_booking('pending'), BookingAction.ACCEPT, PATIENT)
    with pytest.raises(PermissionDeniedError):
        next_status(_booking('pending'), BookingAction.REJECT, PATIENT)


@pytest.mark.parametrize('stranger', [STRANGER_DOCTOR, STRANGER_PATIENT])
def test_non_owners_are_refused_before_state_checks(stranger: Identity) -> None:
    with pytest.raises(PermissionDeniedError):
        next_status(_booking('cancelled'), BookingAction.CANCEL, stranger)


def test_patient_with_doctor_id_is_not_treated_as_doctor() -> None:
    impostor = Identity(user_id=1, role='patient')

    with pytest.raises(PermissionDeniedError):
        next_status(_booking('pending'), BookingAction.ACCEPT, impostor)
