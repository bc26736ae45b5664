import logging
from datetime import datetime
from typing import Any

from appointmentcare.conflicts import CONFLICT_WINDOW, find_conflicting_appointment
from appointmentcare.core.errors import (
    AppointmentCareError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from appointmentcare.models.appointment import APPOINTMENT_STATUSES, CANCELLED_STATUS
from appointmentcare.schemas import AppointmentResponse
from appointmentcare.validation import (
    parse_datetime,
    validate_datetime,
    validate_id,
    validate_sms_flag,
    validate_status,
)

logger = logging.getLogger(__name__)

ID_FIELDS = ('patient_id', 'doctor_id')
DATE_FIELDS = ('appointment_date', 'scheduled_date')
APPOINTMENT_FIELDS = ID_FIELDS + DATE_FIELDS + ('status', 'sms_sent')

DATE_FORMAT_HINT = 'expected YYYY-MM-DD, YYYY-MM-DD HH:MM:SS or YYYY-MM-DDTHH:MM:SS'


def require_appointment_id(raw_id: Any) -> int:
    appointment_id = validate_id(raw_id)
    if appointment_id is None:
        raise ValidationError('Invalid appointment ID: must be a positive integer')
    return appointment_id


def _clean_field(name: str, raw: Any) -> Any:
    if name == 'status':
        if not validate_status(raw):
            raise ValidationError(f'Invalid status: must be one of {", ".join(APPOINTMENT_STATUSES)}')
        return raw

    # Every other column is nullable; an explicit null clears it.
    if raw is None:
        return None

    if name in ID_FIELDS:
        value = validate_id(raw)
        if value is None:
            raise ValidationError(f'Invalid {name}: must be a positive integer')
        return value

    if name in DATE_FIELDS:
        if not validate_datetime(raw):
            raise ValidationError(f'Invalid {name}: {DATE_FORMAT_HINT}')
        return parse_datetime(raw)

    if not validate_sms_flag(raw):
        raise ValidationError('Invalid sms_sent: must be true, false, 0 or 1')
    return bool(raw)


def clean_appointment_fields(fields: dict, require_status: bool) -> dict:
    """Validate the supplied fields in a fixed order and return column values.

    Only keys present in ``fields`` end up in the result, so the returned
    dict can be written as-is for a partial update.
    """
    cleaned = {}
    for name in APPOINTMENT_FIELDS:
        if name == 'status' and require_status and fields.get(name) is None:
            raise ValidationError('Missing required field: status')
        if name in fields:
            cleaned[name] = _clean_field(name, fields[name])
    return cleaned


def _ensure_patient_exists(store, patient_id: int) -> None:
    if not store.patient_exists(patient_id):
        raise NotFoundError(f'Patient with ID {patient_id} not found')


def _ensure_doctor_exists(store, doctor_id: int) -> None:
    if not store.doctor_exists(doctor_id, lock=True):
        raise NotFoundError(f'Doctor with ID {doctor_id} not found')


def _ensure_no_conflict(
    store,
    doctor_id: int | None,
    scheduled_date: datetime | None,
    exclude_appointment_id: int | None = None,
) -> None:
    conflict = find_conflicting_appointment(
        store,
        doctor_id,
        scheduled_date,
        exclude_appointment_id=exclude_appointment_id,
    )
    if conflict is None:
        return

    logger.warning(
        'Rejected booking for doctor %s at %s: conflicts with appointment %s at %s',
        doctor_id,
        scheduled_date,
        conflict.id,
        conflict.scheduled_date,
    )
    window_minutes = int(CONFLICT_WINDOW.total_seconds() // 60)
    raise ConflictError(
        f'Doctor already has an appointment within {window_minutes} minutes of the requested time',
        conflict={
            'appointment_id': conflict.id,
            'scheduled_date': conflict.scheduled_date.isoformat(),
            'requested_date': scheduled_date.isoformat(),
        },
    )


def _load_appointment(store, appointment_id: int):
    appointment = store.get_appointment(appointment_id)
    if appointment is None:
        raise NotFoundError(f'Appointment with ID {appointment_id} not found')
    return appointment


def create_appointment(store, fields: dict) -> AppointmentResponse:
    values = clean_appointment_fields(fields, require_status=True)

    try:
        if values.get('patient_id') is not None:
            _ensure_patient_exists(store, values['patient_id'])
        if values.get('doctor_id') is not None:
            _ensure_doctor_exists(store, values['doctor_id'])

        if values['status'] != CANCELLED_STATUS:
            _ensure_no_conflict(store, values.get('doctor_id'), values.get('scheduled_date'))

        appointment = store.insert_appointment(values)
        store.commit()
    except AppointmentCareError:
        store.rollback()
        raise

    logger.info('Created appointment %s for doctor %s', appointment.id, values.get('doctor_id'))
    return AppointmentResponse.model_validate(_load_appointment(store, appointment.id))


def update_appointment(store, raw_id: Any, fields: dict) -> AppointmentResponse:
    appointment_id = require_appointment_id(raw_id)
    if not fields:
        raise ValidationError('No fields provided to update')

    values = clean_appointment_fields(fields, require_status=False)

    try:
        existing = _load_appointment(store, appointment_id)

        if values.get('patient_id') is not None:
            _ensure_patient_exists(store, values['patient_id'])

        doctor_id = values['doctor_id'] if 'doctor_id' in values else existing.doctor_id
        scheduled_date = values['scheduled_date'] if 'scheduled_date' in values else existing.scheduled_date
        resulting_status = values.get('status', existing.status)

        if 'doctor_id' in values and doctor_id is not None:
            _ensure_doctor_exists(store, doctor_id)
        elif doctor_id is not None:
            store.doctor_exists(doctor_id, lock=True)

        if resulting_status != CANCELLED_STATUS:
            _ensure_no_conflict(store, doctor_id, scheduled_date, exclude_appointment_id=appointment_id)

        store.update_appointment(existing, values)
        store.commit()
    except AppointmentCareError:
        store.rollback()
        raise

    logger.info('Updated appointment %s (%s)', appointment_id, ', '.join(sorted(values)))
    return AppointmentResponse.model_validate(_load_appointment(store, appointment_id))


def delete_appointment(store, raw_id: Any) -> AppointmentResponse:
    appointment_id = require_appointment_id(raw_id)

    try:
        appointment = _load_appointment(store, appointment_id)
        snapshot = AppointmentResponse.model_validate(appointment)
        store.delete_appointment(appointment)
        store.commit()
    except AppointmentCareError:
        store.rollback()
        raise

    logger.info('Deleted appointment %s', appointment_id)
    return snapshot


def get_appointment(store, raw_id: Any) -> AppointmentResponse:
    appointment_id = require_appointment_id(raw_id)
    return AppointmentResponse.model_validate(_load_appointment(store, appointment_id))


def list_appointments(store) -> list[AppointmentResponse]:
    return [AppointmentResponse.model_validate(appointment) for appointment in store.list_appointments()]
