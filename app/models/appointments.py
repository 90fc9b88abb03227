"""Appointments table model using SQLAlchemy Core."""

import secrets
import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Time,
    Uuid,
    text,
)

from app.models.base import metadata, utcnow


def generate_confirmation_token() -> str:
    """Opaque, unguessable token for the public confirmation link."""
    return secrets.token_urlsafe(32)


appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    # Ownership / references
    Column(
        "clinic_id",
        Uuid,
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "patient_id",
        Uuid,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "professional_id",
        Uuid,
        ForeignKey("professionals.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column(
        "procedure_id",
        Uuid,
        ForeignKey("procedures.id", ondelete="SET NULL"),
        nullable=True,
    ),
    # Schedule (clinic-local, no timezone)
    Column("appointment_date", Date, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("duration_minutes", Integer, nullable=True),
    # Status management
    Column("status", String(20), nullable=False, server_default=text("'scheduled'")),
    Column(
        "confirmation_token",
        String(128),
        nullable=False,
        unique=True,
        default=generate_confirmation_token,
    ),
    Column("confirmed_at", DateTime(timezone=True), nullable=True),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    Column("cancellation_reason", Text, nullable=True),
    Column("started_at", DateTime(timezone=True), nullable=True),
    Column("completed_at", DateTime(timezone=True), nullable=True),
    # Metadata
    Column("notes", Text, nullable=True),
    Column("created_by", Uuid, nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'arrived', 'in_progress', "
        "'completed', 'cancelled', 'no_show')",
        name="appointments_status_check",
    ),
)

# Report queries filter by clinic and date range, optionally by professional
Index("idx_appointments_clinic_date", appointments.c.clinic_id, appointments.c.appointment_date)
Index("idx_appointments_professional_id", appointments.c.professional_id)
Index("idx_appointments_patient_id", appointments.c.patient_id)
