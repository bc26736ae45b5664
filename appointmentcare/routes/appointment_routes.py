from fastapi import APIRouter, Depends, status

from appointmentcare.dependencies import get_store
from appointmentcare.schemas import AppointmentPayload, build_envelope
from appointmentcare.services import appointment_service
from appointmentcare.store import AppointmentStore

router = APIRouter(tags=['appointments'])


@router.get('')
def list_appointments(store: AppointmentStore = Depends(get_store)):
    appointments = appointment_service.list_appointments(store)

    return build_envelope(
        data=[appointment.model_dump(mode='json') for appointment in appointments],
        count=len(appointments),
    )


@router.get('/{appointment_id}')
def get_appointment(appointment_id: str, store: AppointmentStore = Depends(get_store)):
    appointment = appointment_service.get_appointment(store, appointment_id)

    return build_envelope(data=appointment.model_dump(mode='json'))


@router.post('', status_code=status.HTTP_201_CREATED)
def create_appointment(data: AppointmentPayload, store: AppointmentStore = Depends(get_store)):
    appointment = appointment_service.create_appointment(store, data.present_fields())

    return build_envelope(
        data=appointment.model_dump(mode='json'),
        message='Appointment created successfully',
    )


@router.put('/{appointment_id}')
def update_appointment(
    appointment_id: str,
    data: AppointmentPayload,
    store: AppointmentStore = Depends(get_store),
):
    appointment = appointment_service.update_appointment(store, appointment_id, data.present_fields())

    return build_envelope(
        data=appointment.model_dump(mode='json'),
        message='Appointment updated successfully',
    )


@router.delete('/{appointment_id}')
def delete_appointment(appointment_id: str, store: AppointmentStore = Depends(get_store)):
    appointment = appointment_service.delete_appointment(store, appointment_id)

    return build_envelope(
        data=appointment.model_dump(mode='json'),
        message='Appointment deleted successfully',
    )
