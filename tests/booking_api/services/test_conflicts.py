from datetime import datetime

import pytest
from conftest import add_booking

from booking_api.services.conflicts import find_conflict, has_conflict, intervals_overlap

TEN = datetime(2026, 1, 5, 10, 0)
TEN_FIFTEEN = datetime(2026, 1, 5, 10, 15)
TEN_THIRTY = datetime(2026, 1, 5, 10, 30)
TEN_FORTY_FIVE = datetime(2026, 1, 5, 10, 45)


@pytest.mark.parametrize(
    ('first', 'second', 'expected'),
    [
        ((TEN, TEN_THIRTY), (TEN_FIFTEEN, TEN_FORTY_FIVE), True),
        ((TEN, TEN_FORTY_FIVE), (TEN_FIFTEEN, TEN_THIRTY), True),
        ((TEN, TEN_FIFTEEN), (TEN_FIFTEEN, TEN_THIRTY), False),
        ((TEN_THIRTY, TEN_FORTY_FIVE), (TEN, TEN_THIRTY), False),
    ],
)
def test_intervals_overlap_is_half_open(first, second, expected: bool) -> None:
    assert intervals_overlap(*first, *second) is expected
    assert intervals_overlap(*second, *first) is expected


def test_has_conflict_only_considers_booked(db_session, doctor, patient) -> None:
    add_booking(db_session, doctor, patient, TEN, status='pending')
    add_booking(db_session, doctor, patient, TEN_FIFTEEN, status='rejected')
    add_booking(db_session, doctor, patient, TEN_THIRTY, status='cancelled')

    assert not has_conflict(db_session, doctor.id, TEN, TEN_FORTY_FIVE)


def test_has_conflict_detects_overlapping_booked_interval(db_session, doctor, other_doctor, patient) -> None:
    booked = add_booking(db_session, doctor, patient, TEN, minutes=30, status='booked')

    assert has_conflict(db_session, doctor.id, TEN_FIFTEEN, TEN_FORTY_FIVE)
    assert find_conflict(db_session, doctor.id, TEN_FIFTEEN, TEN_FORTY_FIVE).id == booked.id
    assert not has_conflict(db_session, doctor.id, TEN_THIRTY, TEN_FORTY_FIVE)
    assert not has_conflict(db_session, other_doctor.id, TEN, TEN_THIRTY)


def test_has_conflict_can_exclude_the_booking_being_changed(db_session, doctor, patient) -> None:
    booked = add_booking(db_session, doctor, patient, TEN, minutes=30, status='booked')

    assert not has_conflict(db_session, doctor.id, TEN, TEN_FORTY_FIVE, exclude_booking_id=booked.id)
