"""Appointment service for staff-side business logic."""

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, func, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    AlreadyProcessedException,
    ForbiddenException,
    NotFoundException,
)
from app.core.lifecycle import plan_transition
from app.core.permissions import Capability, StaffContext
from app.database import translate_store_errors
from app.models.appointments import appointments
from app.schemas.appointments import (
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
)

logger = structlog.get_logger()


async def compare_and_set_status(
    db: AsyncSession,
    appointment_id: UUID,
    seen_status: AppointmentStatus,
    values: dict[str, Any],
) -> bool:
    """
    Write ``values`` only if the appointment is still in ``seen_status``.

    Returns:
        True if the row was updated, False if another writer got there first
    """
    stmt = (
        update(appointments)
        .where(
            and_(
                appointments.c.id == appointment_id,
                appointments.c.status == seen_status.value,
            )
        )
        .values(**values)
        .returning(appointments.c.id)
    )
    result = await db.execute(stmt)
    updated = result.first()
    await db.commit()
    return updated is not None


def to_response(row: RowMapping | dict) -> AppointmentResponse:
    """Build the staff response, adding the patient confirmation link."""
    data = dict(row)
    data["confirmation_url"] = settings.confirmation_url(data["confirmation_token"])
    return AppointmentResponse.model_validate(data)


class AppointmentService:
    """Service for managing appointments on behalf of clinic staff."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _get_row(self, context: StaffContext, appointment_id: UUID) -> RowMapping:
        stmt = select(appointments).where(
            and_(
                appointments.c.id == appointment_id,
                appointments.c.clinic_id == context.clinic_id,
            )
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Appointment not found")

        return row

    async def get_appointment(
        self,
        context: StaffContext,
        appointment_id: UUID,
    ) -> AppointmentResponse:
        """
        Get appointment by ID within the staff member's clinic.

        Raises:
            NotFoundException: If appointment not found in the clinic
        """
        async with translate_store_errors(
            self.db, "get_appointment", appointment_id=str(appointment_id)
        ):
            row = await self._get_row(context, appointment_id)

        return to_response(row)

    async def list_appointments(
        self,
        context: StaffContext,
        filters: AppointmentFilters,
    ) -> AppointmentListResponse:
        """
        List clinic appointments with filtering and pagination.

        Args:
            context: Acting staff member
            filters: Filter and pagination parameters

        Returns:
            Paginated list of appointments
        """
        conditions = [appointments.c.clinic_id == context.clinic_id]

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.professional_id:
            conditions.append(appointments.c.professional_id == filters.professional_id)

        if filters.from_date:
            conditions.append(appointments.c.appointment_date >= filters.from_date)

        if filters.to_date:
            conditions.append(appointments.c.appointment_date <= filters.to_date)

        count_stmt = select(func.count()).select_from(appointments).where(and_(*conditions))

        offset = (filters.page - 1) * filters.page_size
        stmt = (
            select(appointments)
            .where(and_(*conditions))
            .order_by(appointments.c.appointment_date, appointments.c.start_time)
            .limit(filters.page_size)
            .offset(offset)
        )

        async with translate_store_errors(
            self.db, "list_appointments", clinic_id=str(context.clinic_id)
        ):
            total = (await self.db.execute(count_stmt)).scalar() or 0
            rows = (await self.db.execute(stmt)).mappings().all()

        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[to_response(row) for row in rows],
        )

    async def update_appointment_status(
        self,
        context: StaffContext,
        appointment_id: UUID,
        data: AppointmentStatusUpdate,
        now: datetime,
    ) -> AppointmentResponse:
        """
        Move an appointment to another status on behalf of staff.

        Raises:
            ForbiddenException: If the staff member cannot manage appointments
            NotFoundException: If appointment not found in the clinic
            AlreadyProcessedException: If the appointment is in a terminal status
            InvalidTransitionException: If the move is not allowed
        """
        if not context.can(Capability.MANAGE_APPOINTMENTS):
            raise ForbiddenException("Missing permission: manage_appointments")

        async with translate_store_errors(
            self.db, "update_appointment_status", appointment_id=str(appointment_id)
        ):
            row = await self._get_row(context, appointment_id)
            current = AppointmentStatus(row["status"])

            values = plan_transition(current, data.status, now, reason=data.reason)
            if data.notes:
                values["notes"] = data.notes
                values["updated_at"] = now

            if not values:
                return to_response(row)

            if not await compare_and_set_status(self.db, appointment_id, current, values):
                fresh = await self._get_row(context, appointment_id)
                logger.warning(
                    "appointment_status_changed_concurrently",
                    appointment_id=str(appointment_id),
                    seen_status=current.value,
                    current_status=fresh["status"],
                )
                raise AlreadyProcessedException(fresh["status"])

            row = await self._get_row(context, appointment_id)

        logger.info(
            "appointment_status_updated",
            appointment_id=str(appointment_id),
            clinic_id=str(context.clinic_id),
            old_status=current.value,
            new_status=data.status.value,
            actor_id=str(context.user_id),
        )
        return to_response(row)
