"""Public appointment confirmation endpoints (no authentication)."""

from fastapi import APIRouter, Depends, status

from app.dependencies import DatabaseSession, Now, enforce_public_rate_limit
from app.schemas.confirmation import CancelRequest, ConfirmationView
from app.services.confirmation_service import ConfirmationService

router = APIRouter(dependencies=[Depends(enforce_public_rate_limit)])


@router.get(
    "/{token}",
    response_model=ConfirmationView,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by confirmation token",
)
async def fetch_appointment(token: str, db: DatabaseSession) -> ConfirmationView:
    """
    Show the appointment a confirmation link points to.

    The response says whether the patient can still confirm or cancel, so
    the page can render the current state instead of action buttons.
    """
    service = ConfirmationService(db)
    return await service.fetch_appointment(token)


@router.post(
    "/{token}/confirm",
    response_model=ConfirmationView,
    status_code=status.HTTP_200_OK,
    summary="Confirm attendance",
)
async def confirm_appointment(token: str, db: DatabaseSession, now: Now) -> ConfirmationView:
    """
    Confirm attendance through the link.

    Returns 409 with the current status if the appointment was already
    cancelled, completed or marked as a no-show.
    """
    service = ConfirmationService(db)
    return await service.confirm(token, now)


@router.post(
    "/{token}/cancel",
    response_model=ConfirmationView,
    status_code=status.HTTP_200_OK,
    summary="Cancel appointment",
)
async def cancel_appointment(
    token: str,
    db: DatabaseSession,
    now: Now,
    data: CancelRequest | None = None,
) -> ConfirmationView:
    """Cancel through the link, with an optional reason."""
    service = ConfirmationService(db)
    return await service.cancel(token, now, data.reason if data else None)
