from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from appointmentcare.core.errors import PersistenceError
from appointmentcare.database import SessionLocal, ensure_appointment_schema
from appointmentcare.store import AppointmentStore


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise PersistenceError('Database unavailable. Verify DATABASE_URL and database credentials.') from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> AppointmentStore:
    ensure_database_ready()
    return AppointmentStore(db)
