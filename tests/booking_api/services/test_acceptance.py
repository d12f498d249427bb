from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from booking_api.core.errors import BookingValidationError
from booking_api.services.acceptance import (
    AcceptedRange,
    are_contiguous,
    check_within_schedule,
    expand,
    normalize_accept_start,
    selection_to_start_and_blocks,
)
from booking_api.services.weekly_availability import DayAvailability, TimeWindow

TEN = datetime(2026, 1, 5, 10, 0)


def _booking(booking_type: str = 'walk-in'):
    return SimpleNamespace(slot_start=TEN, slot_end=TEN + timedelta(minutes=15), booking_type=booking_type)


def _day(*windows: tuple[str, str]) -> DayAvailability:
    return DayAvailability(
        available=True,
        time_slots=[TimeWindow(start_time=start, end_time=end) for start, end in windows],
    )


def test_expand_defaults_to_the_requested_slot() -> None:
    accepted = expand(_booking())

    assert accepted == AcceptedRange(start=TEN, end=datetime(2026, 1, 5, 10, 15))
    assert accepted.blocks == 1


def test_expand_widens_from_a_new_start() -> None:
    accepted = expand(_booking(), datetime(2026, 1, 5, 11, 0), 3)

    assert accepted.start == datetime(2026, 1, 5, 11, 0)
    assert accepted.end == datetime(2026, 1, 5, 11, 45)


def test_expand_requires_two_blocks_for_home_visit() -> None:
    with pytest.raises(BookingValidationError) as exception_info:
        expand(_booking('home-visit'), None, 1)

    assert exception_info.value.message == 'Home visit requires at least 30 minutes (2 blocks)'

    with pytest.raises(BookingValidationError):
        expand(_booking('home-visit'))

    assert expand(_booking('home-visit'), None, 2).end == datetime(2026, 1, 5, 10, 30)


def test_expand_rejects_non_positive_blocks() -> None:
    with pytest.raises(BookingValidationError):
        expand(_booking(), None, 0)


def test_normalize_accept_start_moves_aware_values_to_local_wall_clock() -> None:
    aware = datetime(2026, 1, 5, 10, 0, 30, tzinfo=timezone.utc)

    normalized = normalize_accept_start(aware)

    assert normalized.tzinfo is None
    assert normalized == aware.astimezone().replace(tzinfo=None, second=0)
    assert normalize_accept_start(datetime(2026, 1, 5, 10, 0, 12)) == TEN


@pytest.mark.parametrize(
    ('times', 'expected'),
    [
        ([], True),
        (['10:00 AM'], True),
        (['10:15 AM', '10:00 AM', '10:30 AM'], True),
        (['11:45 AM', '12:00 PM'], True),
        (['10:00 AM', '10:30 AM'], False),
        (['10:00 AM', '10:00 AM'], False),
    ],
)
def test_are_contiguous(times: list[str], expected: bool) -> None:
    assert are_contiguous(times) is expected


def test_selection_to_start_and_blocks_uses_earliest_slot() -> None:
    start, blocks = selection_to_start_and_blocks(date(2026, 1, 5), ['10:30 AM', '10:15 AM'])

    assert start == datetime(2026, 1, 5, 10, 15)
    assert blocks == 2


@pytest.mark.parametrize('times', [[], ['10:00 AM', '11:00 AM']])
def test_selection_to_start_and_blocks_rejects_bad_selection(times: list[str]) -> None:
    with pytest.raises(BookingValidationError):
        selection_to_start_and_blocks(date(2026, 1, 5), times)


def test_check_within_schedule_accepts_range_across_adjacent_windows() -> None:
    day = _day(('9:00 AM', '10:30 AM'), ('10:30 AM', '12:00 PM'))

    check_within_schedule(day, AcceptedRange(start=TEN, end=datetime(2026, 1, 5, 11, 0)))


@pytest.mark.parametrize(
    ('start', 'end'),
    [
        (datetime(2026, 1, 5, 11, 45), datetime(2026, 1, 5, 12, 15)),
        (datetime(2026, 1, 5, 8, 45), datetime(2026, 1, 5, 9, 15)),
        (datetime(2026, 1, 5, 23, 45), datetime(2026, 1, 6, 0, 15)),
    ],
)
def test_check_within_schedule_rejects_ranges_outside_hours(start: datetime, end: datetime) -> None:
    day = _day(('9:00 AM', '12:00 PM'))

    with pytest.raises(BookingValidationError):
        check_within_schedule(day, AcceptedRange(start=start, end=end))


def test_check_within_schedule_rejects_closed_day() -> None:
    with pytest.raises(BookingValidationError):
        check_within_schedule(None, AcceptedRange(start=TEN, end=datetime(2026, 1, 5, 10, 15)))


@pytest.mark.parametrize('blocks', [97, 10**12])
def test_expand_rejects_ranges_longer_than_a_day(blocks: int) -> None:
    with pytest.raises(BookingValidationError):
        expand(_booking(), None, blocks)


def test_expand_allows_a_full_day() -> None:
    assert expand(_booking(), datetime(2026, 1, 5, 0, 0), 96).end == datetime(2026, 1, 6, 0, 0)


def test_expand_rejects_start_off_the_slot_grid() -> None:
    with pytest.raises(BookingValidationError) as exception_info:
        expand(_booking(), datetime(2026, 1, 5, 10, 7), 1)

    assert exception_info.value.message == 'acceptStart must be on a 15-minute boundary'
