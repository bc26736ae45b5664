"""Read-only endpoints for the tables appointments refer to."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from appointmentcare.core.errors import NotFoundError, ValidationError
from appointmentcare.dependencies import get_store
from appointmentcare.models.doctor import Doctor
from appointmentcare.models.lookups import Genre, Neighbourhood, Speciality
from appointmentcare.models.patient import Patient
from appointmentcare.schemas import DoctorResponse, LookupResponse, PatientResponse, build_envelope
from appointmentcare.store import AppointmentStore
from appointmentcare.validation import validate_id

router = APIRouter(tags=['lookups'])


def _register_lookup(path: str, model, schema: type[BaseModel], label: str) -> None:
    def list_records(store: AppointmentStore = Depends(get_store)):
        records = store.list_records(model)
        return build_envelope(
            data=[schema.model_validate(record).model_dump(mode='json') for record in records],
            count=len(records),
        )

    def get_record(record_id: str, store: AppointmentStore = Depends(get_store)):
        parsed_id = validate_id(record_id)
        if parsed_id is None:
            raise ValidationError(f'Invalid {label} ID: must be a positive integer')

        record = store.get_record(model, parsed_id)
        if record is None:
            raise NotFoundError(f'{label.capitalize()} with ID {parsed_id} not found')

        return build_envelope(data=schema.model_validate(record).model_dump(mode='json'))

    router.add_api_route(f'/{path}', list_records, methods=['GET'], name=f'list_{path}')
    router.add_api_route(f'/{path}/{{record_id}}', get_record, methods=['GET'], name=f'get_{path}')


_register_lookup('doctors', Doctor, DoctorResponse, 'doctor')
_register_lookup('patients', Patient, PatientResponse, 'patient')
_register_lookup('specialities', Speciality, LookupResponse, 'speciality')
_register_lookup('genres', Genre, LookupResponse, 'genre')
_register_lookup('neighbourhoods', Neighbourhood, LookupResponse, 'neighbourhood')
