"""Error taxonomy shared by the store, the service layer and the HTTP handlers."""

from fastapi import status


class AppointmentCareError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppointmentCareError):
    """Malformed id, date, status or flag, or a missing required field."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppointmentCareError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppointmentCareError):
    """The doctor already has an active appointment inside the conflict window."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, conflict: dict):
        super().__init__(message)
        self.conflict = conflict


class PersistenceError(AppointmentCareError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
