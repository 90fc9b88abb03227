"""Clinic staff appointment endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import AppointmentManager, DatabaseSession, Now, StaffMember
from app.schemas.appointments import (
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
)
from app.services.appointment_service import AppointmentService

router = APIRouter()


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List clinic appointments",
)
async def list_appointments(
    context: StaffMember,
    db: DatabaseSession,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    professional_id: UUID | None = Query(None),
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments of the clinic with filtering.

    Args:
        context: Acting staff member
        db: Database session
        status_filter: Filter by status
        professional_id: Filter by professional
        from_date: First appointment date to include
        to_date: Last appointment date to include
        page: Page number
        page_size: Items per page

    Returns:
        Paginated list of appointments
    """
    filters = AppointmentFilters(
        status=status_filter,
        professional_id=professional_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )

    service = AppointmentService(db)
    return await service.list_appointments(context, filters)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    context: StaffMember,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Get a specific appointment of the clinic."""
    service = AppointmentService(db)
    return await service.get_appointment(context, appointment_id)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    context: AppointmentManager,
    db: DatabaseSession,
    now: Now,
) -> AppointmentResponse:
    """
    Move an appointment through its lifecycle (arrive, start, complete, no-show, cancel).

    Args:
        appointment_id: Appointment ID
        data: Target status, with a reason when cancelling
        context: Staff member allowed to manage appointments
        db: Database session
        now: Time of the action

    Returns:
        Updated appointment

    Raises:
        HTTPException: 404 if not in the clinic, 409 if the move is not allowed
    """
    service = AppointmentService(db)
    return await service.update_appointment_status(context, appointment_id, data, now)
