"""Clinic roles, capabilities and the per-request staff context."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class Role(str, Enum):
    """Role a staff member holds in a clinic."""

    OWNER = "owner"
    ADMIN = "admin"
    RECEPTIONIST = "receptionist"
    PROFESSIONAL = "professional"
    ADMINISTRATIVE = "administrative"


class Capability(str, Enum):
    """Actions gated by role."""

    VIEW_REPORTS = "view_reports"
    ADMIN = "admin"
    MANAGE_APPOINTMENTS = "manage_appointments"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.OWNER: frozenset(Capability),
    Role.ADMIN: frozenset(Capability),
    Role.ADMINISTRATIVE: frozenset({Capability.VIEW_REPORTS, Capability.MANAGE_APPOINTMENTS}),
    Role.RECEPTIONIST: frozenset({Capability.MANAGE_APPOINTMENTS}),
    Role.PROFESSIONAL: frozenset({Capability.MANAGE_APPOINTMENTS}),
}


@dataclass(frozen=True)
class StaffContext:
    """Who is acting, and in which clinic. Passed explicitly into services."""

    user_id: UUID
    clinic_id: UUID
    role: Role | None
    is_super_admin: bool = False

    def can(self, capability: Capability) -> bool:
        if self.is_super_admin:
            return True
        if self.role is None:
            return False
        return capability in ROLE_CAPABILITIES[self.role]
