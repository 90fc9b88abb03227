"""Staff user lookups used to build the request context."""

from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Role, StaffContext
from app.database import translate_store_errors
from app.models.users import user_roles, users


class UserService:
    """Service for staff user operations."""

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: UUID) -> dict | None:
        """Get staff user by ID."""
        async with translate_store_errors(db, "get_user", user_id=str(user_id)):
            result = await db.execute(select(users).where(users.c.id == user_id))
            user = result.mappings().first()

        return dict(user) if user else None

    @staticmethod
    async def get_clinic_role(db: AsyncSession, user_id: UUID, clinic_id: UUID) -> Role | None:
        """Role the user holds in the clinic, if any."""
        stmt = select(user_roles.c.role).where(
            and_(
                user_roles.c.user_id == user_id,
                user_roles.c.clinic_id == clinic_id,
            )
        )
        async with translate_store_errors(db, "get_clinic_role", user_id=str(user_id)):
            result = await db.execute(stmt)
            role = result.scalar_one_or_none()

        return Role(role) if role else None

    @classmethod
    async def build_staff_context(
        cls,
        db: AsyncSession,
        user: dict,
        clinic_id: UUID,
    ) -> StaffContext:
        """Resolve the acting user's standing in a clinic."""
        role = await cls.get_clinic_role(db, user["id"], clinic_id)
        return StaffContext(
            user_id=user["id"],
            clinic_id=clinic_id,
            role=role,
            is_super_admin=bool(user.get("is_super_admin")),
        )
