"""Patient model definition using SQLAlchemy Core."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    text,
)

from app.models.base import metadata, utcnow

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column(
        "clinic_id",
        Uuid,
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("name", Text, nullable=False),
    Column("phone", String(20)),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    # No-show block (set by the accrual job, cleared only by an explicit unblock)
    Column("no_show_blocked_until", DateTime(timezone=True)),
    Column("no_show_blocked_at", DateTime(timezone=True)),
    Column(
        "no_show_blocked_professional_id",
        Uuid,
        ForeignKey("professionals.id", ondelete="SET NULL"),
    ),
    # Unblock audit trail
    Column("no_show_unblocked_at", DateTime(timezone=True)),
    Column("no_show_unblocked_by", Uuid),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

Index("idx_patients_blocked_until", patients.c.clinic_id, patients.c.no_show_blocked_until)
