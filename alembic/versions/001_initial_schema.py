"""Initial schema - clinics, staff, patients and appointments.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    ]


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def upgrade() -> None:
    """Upgrade database schema."""
    # Enable pgcrypto extension
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ===================================================================
    # CLINICS
    # ===================================================================
    op.create_table(
        "clinics",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_clinics_name", "clinics", ["name"])

    op.create_table(
        "professionals",
        _uuid_pk(),
        sa.Column(
            "clinic_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clinics.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("specialty", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    )
    op.create_index("ix_professionals_clinic_id", "professionals", ["clinic_id"])
    op.create_index("ix_professionals_is_active", "professionals", ["is_active"])

    op.create_table(
        "procedures",
        _uuid_pk(),
        sa.Column(
            "clinic_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clinics.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    )
    op.create_index("ix_procedures_clinic_id", "procedures", ["clinic_id"])

    # ===================================================================
    # STAFF USERS AND CLINIC ROLES
    # ===================================================================
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column(
            "is_super_admin", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "user_roles",
        _uuid_pk(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "clinic_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clinics.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.UniqueConstraint("user_id", "clinic_id", name="user_roles_user_clinic_key"),
        sa.CheckConstraint(
            "role IN ('owner', 'admin', 'receptionist', 'professional', 'administrative')",
            name="user_roles_role_check",
        ),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])
    op.create_index("ix_user_roles_clinic_id", "user_roles", ["clinic_id"])

    # ===================================================================
    # PATIENTS - includes the no-show block and its unblock audit trail
    # ===================================================================
    op.create_table(
        "patients",
        _uuid_pk(),
        sa.Column(
            "clinic_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clinics.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("no_show_blocked_until", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("no_show_blocked_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "no_show_blocked_professional_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("professionals.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("no_show_unblocked_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("no_show_unblocked_by", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_patients_clinic_id", "patients", ["clinic_id"])
    op.create_index(
        "idx_patients_blocked_until", "patients", ["clinic_id", "no_show_blocked_until"]
    )

    # ===================================================================
    # APPOINTMENTS
    # ===================================================================
    op.create_table(
        "appointments",
        _uuid_pk(),
        sa.Column(
            "clinic_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clinics.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "patient_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "professional_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("professionals.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "procedure_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("procedures.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), server_default="scheduled", nullable=False),
        sa.Column("confirmation_token", sa.String(128), nullable=False, unique=True),
        sa.Column("confirmed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("cancelled_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("started_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("completed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'arrived', 'in_progress', "
            "'completed', 'cancelled', 'no_show')",
            name="appointments_status_check",
        ),
    )

    # Create indexes
    op.create_index(
        "idx_appointments_clinic_date", "appointments", ["clinic_id", "appointment_date"]
    )
    op.create_index("idx_appointments_professional_id", "appointments", ["professional_id"])
    op.create_index("idx_appointments_patient_id", "appointments", ["patient_id"])


def downgrade() -> None:
    """Downgrade database schema."""
    # Drop indexes
    op.drop_index("idx_appointments_patient_id", table_name="appointments")
    op.drop_index("idx_appointments_professional_id", table_name="appointments")
    op.drop_index("idx_appointments_clinic_date", table_name="appointments")
    op.drop_index("idx_patients_blocked_until", table_name="patients")
    op.drop_index("ix_patients_clinic_id", table_name="patients")
    op.drop_index("ix_user_roles_clinic_id", table_name="user_roles")
    op.drop_index("ix_user_roles_user_id", table_name="user_roles")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_procedures_clinic_id", table_name="procedures")
    op.drop_index("ix_professionals_is_active", table_name="professionals")
    op.drop_index("ix_professionals_clinic_id", table_name="professionals")
    op.drop_index("ix_clinics_name", table_name="clinics")

    # Drop tables
    op.drop_table("appointments")
    op.drop_table("patients")
    op.drop_table("user_roles")
    op.drop_table("users")
    op.drop_table("procedures")
    op.drop_table("professionals")
    op.drop_table("clinics")
