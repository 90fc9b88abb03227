"""Database models."""

from app.models.appointments import appointments
from app.models.base import metadata
from app.models.clinics import clinics, procedures, professionals
from app.models.patients import patients
from app.models.users import user_roles, users

__all__ = [
    "appointments",
    "clinics",
    "metadata",
    "patients",
    "procedures",
    "professionals",
    "user_roles",
    "users",
]
