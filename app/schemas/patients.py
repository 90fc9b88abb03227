"""Patient schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class PatientBlockStatus(BaseModel):
    """No-show block fields of a patient, including the unblock audit trail."""

    id: UUID
    name: str
    is_blocked: bool
    no_show_blocked_until: datetime | None = None
    no_show_blocked_at: datetime | None = None
    no_show_unblocked_at: datetime | None = None
    no_show_unblocked_by: UUID | None = None


class BlockedPatient(BaseModel):
    """A patient currently barred from self-service booking."""

    id: UUID
    name: str
    phone: str | None = None
    blocked_until: datetime
    blocked_at: datetime | None = None
    professional_name: str


class BlockedPatientListResponse(BaseModel):
    """Patients currently blocked in a clinic."""

    total: int
    items: list[BlockedPatient]
