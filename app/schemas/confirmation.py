"""Schemas for the public appointment confirmation link."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.appointments import AppointmentStatus


class CancelRequest(BaseModel):
    """Optional free-text reason supplied by the patient."""

    reason: str | None = Field(None, max_length=500)


class ConfirmationView(BaseModel):
    """Appointment summary shown on the confirmation page."""

    id: UUID
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    patient_name: str
    professional_name: str
    clinic_name: str
    clinic_address: str | None = None
    clinic_phone: str | None = None
    already_processed: bool
    can_confirm: bool
    can_cancel: bool
