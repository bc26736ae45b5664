"""SQLAlchemy-backed persistence handle passed into the scheduling core."""

import logging
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from appointmentcare.core.errors import PersistenceError, ValidationError
from appointmentcare.models.appointment import Appointment, CANCELLED_STATUS
from appointmentcare.models.doctor import Doctor
from appointmentcare.models.patient import Patient

logger = logging.getLogger(__name__)

FOREIGN_KEY_MESSAGE = 'Foreign key constraint failed: referenced record does not exist'


@contextmanager
def translate_store_errors(db: Session):
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        if 'foreign key' in str(exc.orig).lower():
            raise ValidationError(FOREIGN_KEY_MESSAGE) from exc
        logger.error('Integrity error: %s', exc.orig)
        raise PersistenceError(str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error('Database error: %s', exc)
        raise PersistenceError(str(exc)) from exc


class AppointmentStore:
    """Reads and writes appointments through a single request-scoped session.

    The session's transaction stays open across the existence checks, the
    conflict query and the write, and is only committed by :meth:`commit`.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_appointment(self, appointment_id: int) -> Appointment | None:
        with translate_store_errors(self.db):
            return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()

    def list_appointments(self) -> list[Appointment]:
        with translate_store_errors(self.db):
            return self.db.query(Appointment).order_by(Appointment.id.asc()).all()

    def doctor_exists(self, doctor_id: int, lock: bool = False) -> bool:
        with translate_store_errors(self.db):
            query = self.db.query(Doctor.id).filter(Doctor.id == doctor_id)
            if lock:
                # Held until commit/rollback; serialises bookings per doctor.
                query = query.with_for_update()
            return query.first() is not None

    def patient_exists(self, patient_id: int) -> bool:
        with translate_store_errors(self.db):
            return self.db.query(Patient.id).filter(Patient.id == patient_id).first() is not None

    def find_active_in_window(
        self,
        doctor_id: int,
        window_start: datetime,
        window_end: datetime,
        exclude_appointment_id: int | None = None,
    ) -> list[Appointment]:
        with translate_store_errors(self.db):
            query = self.db.query(Appointment).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.status != CANCELLED_STATUS,
                Appointment.scheduled_date.is_not(None),
                Appointment.scheduled_date > window_start,
                Appointment.scheduled_date < window_end,
            )
            if exclude_appointment_id is not None:
                query = query.filter(Appointment.id != exclude_appointment_id)

            return query.order_by(Appointment.scheduled_date.asc(), Appointment.id.asc()).all()

    def insert_appointment(self, values: dict) -> Appointment:
        with translate_store_errors(self.db):
            appointment = Appointment(**values)
            self.db.add(appointment)
            self.db.flush()
            return appointment

    def update_appointment(self, appointment: Appointment, values: dict) -> Appointment:
        with translate_store_errors(self.db):
            for column_name, value in values.items():
                setattr(appointment, column_name, value)
            self.db.flush()
            return appointment

    def delete_appointment(self, appointment: Appointment) -> None:
        with translate_store_errors(self.db):
            self.db.delete(appointment)
            self.db.flush()

    def commit(self) -> None:
        with translate_store_errors(self.db):
            self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def get_record(self, model, record_id: int):
        with translate_store_errors(self.db):
            return self.db.query(model).filter(model.id == record_id).first()

    def list_records(self, model) -> list:
        with translate_store_errors(self.db):
            return self.db.query(model).order_by(model.id.asc()).all()
