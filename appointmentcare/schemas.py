from datetime import date, datetime
from typing import Any

from pydantic import BaseModel


class AppointmentPayload(BaseModel):
    """Request body for creating or partially updating an appointment.

    Fields accept any JSON value so the field validators can report their
    own messages. Which keys were actually sent is tracked by pydantic and
    exposed through :meth:`present_fields`.
    """

    patient_id: Any = None
    doctor_id: Any = None
    appointment_date: Any = None
    scheduled_date: Any = None
    status: Any = None
    sms_sent: Any = None

    def present_fields(self) -> dict:
        return self.model_dump(exclude_unset=True)


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int | None = None
    doctor_id: int | None = None
    appointment_date: datetime | None = None
    scheduled_date: datetime | None = None
    status: str
    sms_sent: bool | None = None

    class Config:
        from_attributes = True


class DoctorResponse(BaseModel):
    id: int
    name: str
    crm: str | None = None
    speciality_id: int | None = None

    class Config:
        from_attributes = True


class PatientResponse(BaseModel):
    id: int
    name: str
    birth_date: date | None = None
    phone: str | None = None
    genre_id: int | None = None
    neighbourhood_id: int | None = None

    class Config:
        from_attributes = True


class LookupResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


def build_envelope(
    data: Any = None,
    message: str | None = None,
    count: int | None = None,
    success: bool = True,
    **extra: Any,
) -> dict:
    body: dict[str, Any] = {'success': success}
    if message is not None:
        body['message'] = message
    if count is not None:
        body['count'] = count
    if data is not None:
        body['data'] = data
    body.update(extra)
    return body
