"""Appointment model definitions."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, Boolean
from appointmentcare.database import Base

APPOINTMENT_STATUSES = ('scheduled', 'done', 'cancelled', 'no_show')
CANCELLED_STATUS = 'cancelled'


class Appointment(Base):
    """Represents a booked appointment between a patient and a doctor."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=True, index=True)
    appointment_date = Column(DateTime, nullable=True)
    scheduled_date = Column(DateTime, nullable=True)  # slot used for conflict checks
    status = Column(String(20), nullable=False)
    sms_sent = Column(Boolean, nullable=True)
