"""User model definitions."""

from sqlalchemy import JSON, Column, Integer, String
from booking_api.database import Base


ROLE_PATIENT = 'patient'
ROLE_DOCTOR = 'doctor'


class User(Base):
    """Represents a patient or a doctor account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    first_name = Column(String, default='')
    last_name = Column(String, default='')
    role = Column(String, index=True)  # patient/doctor

    # Doctor profile fields; unused for patients.
    clinic_name = Column(String)
    clinic_address = Column(String)
    weekly_availability = Column(JSON)

    @property
    def full_name(self) -> str:
        return f'{self.first_name or ""} {self.last_name or ""}'.strip()
