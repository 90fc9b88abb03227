"""Public confirmation-link operations: fetch, confirm and cancel by token."""

from collections.abc import Callable
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AlreadyProcessedException, NotFoundException
from app.core.lifecycle import PATIENT_ACTIONABLE, plan_patient_cancel, plan_patient_confirm
from app.core.no_show_policy import PLACEHOLDER
from app.database import translate_store_errors
from app.models.appointments import appointments
from app.models.clinics import clinics, professionals
from app.models.patients import patients
from app.schemas.appointments import AppointmentStatus
from app.schemas.confirmation import ConfirmationView
from app.services.appointment_service import compare_and_set_status

logger = structlog.get_logger()

MIN_TOKEN_LENGTH = 16
MAX_TOKEN_LENGTH = 128

Planner = Callable[[AppointmentStatus], dict[str, Any]]


def _token_hint(token: str) -> str:
    return f"{token[:4]}***"


def _to_view(row: RowMapping) -> ConfirmationView:
    status = AppointmentStatus(row["status"])
    return ConfirmationView(
        id=row["id"],
        appointment_date=row["appointment_date"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        status=status,
        confirmed_at=row["confirmed_at"],
        cancelled_at=row["cancelled_at"],
        cancellation_reason=row["cancellation_reason"],
        patient_name=row["patient_name"] or PLACEHOLDER,
        professional_name=row["professional_name"] or PLACEHOLDER,
        clinic_name=row["clinic_name"] or PLACEHOLDER,
        clinic_address=row["clinic_address"],
        clinic_phone=row["clinic_phone"],
        already_processed=status not in PATIENT_ACTIONABLE,
        can_confirm=status == AppointmentStatus.SCHEDULED,
        can_cancel=status in PATIENT_ACTIONABLE,
    )


class ConfirmationService:
    """Token-addressed appointment actions available without authentication."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _load(self, token: str) -> RowMapping | None:
        stmt = (
            select(
                appointments.c.id,
                appointments.c.appointment_date,
                appointments.c.start_time,
                appointments.c.end_time,
                appointments.c.status,
                appointments.c.confirmed_at,
                appointments.c.cancelled_at,
                appointments.c.cancellation_reason,
                patients.c.name.label("patient_name"),
                professionals.c.name.label("professional_name"),
                clinics.c.name.label("clinic_name"),
                clinics.c.address.label("clinic_address"),
                clinics.c.phone.label("clinic_phone"),
            )
            .select_from(
                appointments.outerjoin(patients, patients.c.id == appointments.c.patient_id)
                .outerjoin(professionals, professionals.c.id == appointments.c.professional_id)
                .outerjoin(clinics, clinics.c.id == appointments.c.clinic_id)
            )
            .where(appointments.c.confirmation_token == token)
        )
        result = await self.db.execute(stmt)
        return result.mappings().first()

    async def _require(self, token: str) -> RowMapping:
        if not MIN_TOKEN_LENGTH <= len(token) <= MAX_TOKEN_LENGTH:
            raise NotFoundException("Appointment not found or link expired")

        row = await self._load(token)
        if row is None:
            raise NotFoundException("Appointment not found or link expired")
        return row

    async def fetch_appointment(self, token: str) -> ConfirmationView:
        """
        Look up an appointment by its confirmation token.

        Raises:
            NotFoundException: If no appointment carries the token
        """
        async with translate_store_errors(self.db, "fetch_appointment", token=_token_hint(token)):
            row = await self._require(token)

        return _to_view(row)

    async def _apply(self, token: str, planner: Planner, event: str) -> ConfirmationView:
        """
        Run a patient transition with a status re-check right before writing.

        The write is conditional on the status that was read. If another writer
        changed it in between, the guard is evaluated once more against the
        fresh row.
        """
        async with translate_store_errors(self.db, event, token=_token_hint(token)):
            for _ in range(2):
                row = await self._require(token)
                current = AppointmentStatus(row["status"])
                values = planner(current)

                if not values:
                    return _to_view(row)

                if await compare_and_set_status(self.db, row["id"], current, values):
                    logger.info(
                        event,
                        appointment_id=str(row["id"]),
                        previous_status=current.value,
                    )
                    return _to_view(await self._require(token))

                logger.warning(
                    "appointment_status_changed_concurrently",
                    appointment_id=str(row["id"]),
                    seen_status=current.value,
                )

            row = await self._require(token)

        raise AlreadyProcessedException(row["status"])

    async def confirm(self, token: str, now: datetime) -> ConfirmationView:
        """
        Confirm attendance. Re-confirming keeps the original ``confirmed_at``.

        Raises:
            NotFoundException: If no appointment carries the token
            AlreadyProcessedException: If the appointment can no longer be confirmed
        """
        return await self._apply(
            token,
            lambda current: plan_patient_confirm(current, now),
            "appointment_confirmed",
        )

    async def cancel(
        self,
        token: str,
        now: datetime,
        reason: str | None = None,
    ) -> ConfirmationView:
        """
        Cancel the appointment, recording the reason or the default text.

        Raises:
            NotFoundException: If no appointment carries the token
            AlreadyProcessedException: If the appointment can no longer be cancelled
        """
        return await self._apply(
            token,
            lambda current: plan_patient_cancel(current, now, reason),
            "appointment_cancelled",
        )
