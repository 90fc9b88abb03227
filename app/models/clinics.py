"""Clinic, professional and procedure models using SQLAlchemy Core."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
    text,
)

from app.models.base import metadata, utcnow

clinics = Table(
    "clinics",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column("name", String(255), nullable=False, index=True),
    Column("address", Text),
    Column("phone", String(20)),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

professionals = Table(
    "professionals",
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
    Column("specialty", String(200)),
    Column("is_active", Boolean, nullable=False, server_default=text("true"), index=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

procedures = Table(
    "procedures",
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
    Column("price", Numeric(10, 2)),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)
