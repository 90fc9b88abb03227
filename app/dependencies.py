"""FastAPI dependencies."""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ForbiddenException, RateLimitException
from app.core.permissions import Capability, StaffContext
from app.core.redis_client import RateLimiter, get_rate_limiter
from app.core.security import decode_access_token
from app.database import get_db
from app.services.user_service import UserService

# Security
security = HTTPBearer()


def get_now() -> datetime:
    """Current time for the request; overridden in tests to pin the clock."""
    return datetime.now(UTC)


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> UUID:
    """
    Extract and validate user ID from JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        User ID from token

    Raises:
        HTTPException: If token is invalid or expired
    """
    token = credentials.credentials
    payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id_str = payload.get("sub")
    if user_id_str is None or not isinstance(user_id_str, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """
    Get current staff user from database.

    Raises:
        HTTPException: If user not found or inactive
    """
    user = await UserService.get_user_by_id(db, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user["is_active"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    return user


async def get_staff_context(
    clinic_id: UUID,
    current_user: Annotated[dict, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StaffContext:
    """
    Build the staff context for a clinic-scoped route.

    Raises:
        ForbiddenException: If the user has no role in the clinic
    """
    context = await UserService.build_staff_context(db, current_user, clinic_id)
    if context.role is None and not context.is_super_admin:
        raise ForbiddenException("No access to this clinic")
    return context


def require_capability(
    capability: Capability,
) -> Callable[..., Awaitable[StaffContext]]:
    """Dependency factory rejecting staff without ``capability`` in the clinic."""

    async def dependency(
        context: Annotated[StaffContext, Depends(get_staff_context)],
    ) -> StaffContext:
        if not context.can(capability):
            raise ForbiddenException(f"Missing permission: {capability.value}")
        return context

    return dependency


async def enforce_public_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> None:
    """Throttle anonymous confirmation-link traffic per client address."""
    client = request.client.host if request.client else "unknown"
    if not limiter.check_rate_limit(
        f"ratelimit:confirm:{client}",
        settings.public_rate_limit_per_minute,
    ):
        raise RateLimitException("Too many requests, please wait a minute")


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[dict, Depends(get_current_user)]
Now = Annotated[datetime, Depends(get_now)]
StaffMember = Annotated[StaffContext, Depends(get_staff_context)]
ReportViewer = Annotated[StaffContext, Depends(require_capability(Capability.VIEW_REPORTS))]
ClinicAdmin = Annotated[StaffContext, Depends(require_capability(Capability.ADMIN))]
AppointmentManager = Annotated[
    StaffContext, Depends(require_capability(Capability.MANAGE_APPOINTMENTS))
]
