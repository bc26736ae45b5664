"""Patient model definitions."""

from sqlalchemy import Column, Integer, String, Date, ForeignKey
from appointmentcare.database import Base


class Patient(Base):
    """Represents a registered patient."""
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    birth_date = Column(Date)
    phone = Column(String(20))
    genre_id = Column(Integer, ForeignKey("genres.id"))
    neighbourhood_id = Column(Integer, ForeignKey("neighbourhoods.id"))
