"""Booking model definitions."""

from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from booking_api.database import Base


ACTIVE_SLOT_CONDITION = text("status IN ('pending', 'booked')")


class Booking(Base):
    """Represents an appointment request and, once accepted, the reserved interval."""
    __tablename__ = "bookings"
    __table_args__ = (
        # One live request per doctor per exact slot start; rejected and cancelled rows do not count.
        Index(
            'uq_bookings_doctor_active_slot',
            'doctor_id',
            'slot_start',
            unique=True,
            sqlite_where=ACTIVE_SLOT_CONDITION,
            postgresql_where=ACTIVE_SLOT_CONDITION,
        ),
        Index('idx_bookings_doctor_status_range', 'doctor_id', 'status', 'slot_start', 'slot_end'),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    slot_start = Column(DateTime, nullable=False)
    slot_end = Column(DateTime, nullable=False)
    booking_type = Column(String, nullable=False, default='walk-in')
    visit_type = Column(String, nullable=False)
    status = Column(String, nullable=False, default='pending', index=True)
    notes = Column(String)
    booking_for = Column(String, nullable=False, default='myself')
    guest_patient = Column(JSON)
    home_visit_address = Column(JSON)
    notify_email = Column(String)
    created_by = Column(String, default='patient')
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    doctor = relationship('User', foreign_keys=[doctor_id])
    patient = relationship('User', foreign_keys=[patient_id])

    @property
    def duration_minutes(self) -> int:
        return int((self.slot_end - self.slot_start).total_seconds() // 60)
