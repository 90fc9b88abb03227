"""Appointment schemas for request/response validation."""

from datetime import date, datetime, time
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    ARRIVED = "arrived"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class AppointmentResponse(BaseModel):
    """Schema for appointment response to clinic staff."""

    id: UUID
    clinic_id: UUID
    patient_id: UUID
    professional_id: UUID | None
    procedure_id: UUID | None = None
    appointment_date: date
    start_time: time
    end_time: time
    duration_minutes: int | None = None
    status: AppointmentStatus
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    notes: str | None = None
    confirmation_url: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    status: AppointmentStatus | None = None
    professional_id: UUID | None = None
    from_date: date | None = None
    to_date: date | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class AppointmentStatusUpdate(BaseModel):
    """Staff request to move an appointment to another status."""

    status: AppointmentStatus
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def require_cancellation_reason(self) -> "AppointmentStatusUpdate":
        """Staff cancellations must say why."""
        if self.status == AppointmentStatus.CANCELLED and not (self.reason or "").strip():
            raise ValueError("A reason is required when cancelling an appointment")
        return self
