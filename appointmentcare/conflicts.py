from datetime import datetime, timedelta
from typing import Protocol

from appointmentcare.models.appointment import Appointment

CONFLICT_WINDOW = timedelta(minutes=20)


class ConflictLookup(Protocol):
    def find_active_in_window(
        self,
        doctor_id: int,
        window_start: datetime,
        window_end: datetime,
        exclude_appointment_id: int | None = None,
    ) -> list[Appointment]:
        ...


def conflict_window(scheduled_date: datetime) -> tuple[datetime, datetime]:
    """Exclusive bounds around ``scheduled_date`` inside which another booking conflicts.

    Bounds are clamped to ``datetime.min`` / ``datetime.max`` for slots at
    the edges of the representable range.
    """
    if scheduled_date - datetime.min > CONFLICT_WINDOW:
        window_start = scheduled_date - CONFLICT_WINDOW
    else:
        window_start = datetime.min

    if datetime.max - scheduled_date > CONFLICT_WINDOW:
        window_end = scheduled_date + CONFLICT_WINDOW
    else:
        window_end = datetime.max

    return window_start, window_end


def find_conflicting_appointment(
    store: ConflictLookup,
    doctor_id: int | None,
    scheduled_date: datetime | None,
    exclude_appointment_id: int | None = None,
) -> Appointment | None:
    """Return the first active appointment of ``doctor_id`` too close to ``scheduled_date``.

    Nothing is checked when either the doctor or the scheduled date is
    missing. Appointments exactly ``CONFLICT_WINDOW`` away do not conflict.
    """
    if doctor_id is None or scheduled_date is None:
        return None

    window_start, window_end = conflict_window(scheduled_date)
    matches = store.find_active_in_window(
        doctor_id,
        window_start,
        window_end,
        exclude_appointment_id=exclude_appointment_id,
    )
    return matches[0] if matches else None
