"""Doctor model definitions."""

from sqlalchemy import Column, Integer, String, ForeignKey
from appointmentcare.database import Base


class Doctor(Base):
    """Represents a doctor who can be booked."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    crm = Column(String(20))  # council registration number
    speciality_id = Column(Integer, ForeignKey("specialities.id"))
