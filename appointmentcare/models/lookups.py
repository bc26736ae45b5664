"""Lookup tables referenced by doctors and patients."""

from sqlalchemy import Column, Integer, String
from appointmentcare.database import Base


class Speciality(Base):
    __tablename__ = "specialities"

    id = Column(Integer, primary_key=True)
    name = Column(String(80), nullable=False)


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Integer, primary_key=True)
    name = Column(String(40), nullable=False)


class Neighbourhood(Base):
    __tablename__ = "neighbourhoods"

    id = Column(Integer, primary_key=True)
    name = Column(String(80), nullable=False)
