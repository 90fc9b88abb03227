"""Staff user and clinic role models using SQLAlchemy Core."""

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)

from app.models.base import metadata, utcnow

users = Table(
    "users",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column("email", Text, nullable=False, unique=True, index=True),
    Column("full_name", Text),
    # Account state
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    # Platform operators see every clinic
    Column("is_super_admin", Boolean, nullable=False, server_default=text("false")),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

user_roles = Table(
    "user_roles",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column(
        "user_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "clinic_id",
        Uuid,
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("role", String(20), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    UniqueConstraint("user_id", "clinic_id", name="user_roles_user_clinic_key"),
    CheckConstraint(
        "role IN ('owner', 'admin', 'receptionist', 'professional', 'administrative')",
        name="user_roles_role_check",
    ),
)
