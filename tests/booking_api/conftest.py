import os
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

from booking_api.auth.jwt_handler import create_access_token  # noqa: E402
from booking_api.database import Base  # noqa: E402
from booking_api.models.booking import Booking  # noqa: E402
from booking_api.models.user import ROLE_DOCTOR, ROLE_PATIENT, User  # noqa: E402

NINE_TO_FIVE = {'available': True, 'timeSlots': [{'startTime': '9:00 AM', 'endTime': '5:00 PM'}]}

EVERY_DAY_NINE_TO_FIVE = {
    day: NINE_TO_FIVE
    for day in ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')
}


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, notice):
        self.sent.append(notice)


class FailingNotifier:
    def __init__(self):
        self.attempts = 0

    def notify(self, notice):
        self.attempts += 1
        raise ConnectionError('mail server down')


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__, Booking.__table__])

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[Booking.__table__, User.__table__])


@pytest.fixture
def doctor(db_session):
    user = User(
        email='house@clinic.test',
        first_name='Greg',
        last_name='House',
        role=ROLE_DOCTOR,
        clinic_name='Princeton Plainsboro',
        clinic_address='1 Hospital Way',
        weekly_availability=EVERY_DAY_NINE_TO_FIVE,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_doctor(db_session):
    user = User(
        email='wilson@clinic.test',
        first_name='James',
        last_name='Wilson',
        role=ROLE_DOCTOR,
        weekly_availability=EVERY_DAY_NINE_TO_FIVE,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def make_patient(db_session, email: str) -> User:
    user = User(email=email, first_name='Pat', last_name=email.split('@')[0].title(), role=ROLE_PATIENT)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def patient(db_session):
    return make_patient(db_session, 'alice@example.test')


@pytest.fixture
def second_patient(db_session):
    return make_patient(db_session, 'bob@example.test')


@pytest.fixture
def tomorrow():
    return (datetime.now() + timedelta(days=1)).date()


@pytest.fixture
def recording_notifier():
    return RecordingNotifier()


def bearer(user: User) -> dict:
    return {'Authorization': f'Bearer {create_access_token(user.id, user.role)}'}


def add_booking(db_session, doctor, patient, start: datetime, minutes: int = 15, status: str = 'pending', **fields):
    booking = Booking(
        doctor_id=doctor.id,
        patient_id=patient.id,
        date=start.date(),
        slot_start=start,
        slot_end=start + timedelta(minutes=minutes),
        booking_type=fields.pop('booking_type', 'walk-in'),
        visit_type=fields.pop('visit_type', 'first-time'),
        booking_for=fields.pop('booking_for', 'myself'),
        status=status,
        notify_email=fields.pop('notify_email', patient.email),
        **fields,
    )
    db_session.add(booking)
    db_session.commit()
    db_session.refresh(booking)
    return booking


@pytest.fixture
def client(db_session, recording_notifier):
    from fastapi.testclient import TestClient

    from booking_api.database import get_db
    from booking_api.main import app
    from booking_api.services.notifications import get_notifier

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: recording_notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
