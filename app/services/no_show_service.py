"""No-show report, blocked patient listing and the audited unblock action."""

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import and_, func, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ConflictException, ForbiddenException, NotFoundException
from app.core.no_show_policy import (
    PLACEHOLDER,
    is_blocked,
    no_show_rate,
    no_shows_by_day,
    clinic_today,
    resolve_period,
    summarize_no_shows,
)
from app.core.permissions import Capability, StaffContext
from app.database import translate_store_errors
from app.models.clinics import professionals
from app.models.patients import patients
from app.schemas.appointments import AppointmentStatus
from app.schemas.patients import BlockedPatient, BlockedPatientListResponse, PatientBlockStatus
from app.schemas.reports import (
    DailyCount,
    NoShowPatient,
    NoShowReportResponse,
    NoShowStats,
    ReportPeriod,
)
from app.services.report_service import load_appointment_facts

logger = structlog.get_logger()


def _block_status(row: RowMapping, now: datetime) -> PatientBlockStatus:
    return PatientBlockStatus(
        id=row["id"],
        name=row["name"],
        is_blocked=is_blocked(row["no_show_blocked_until"], now),
        no_show_blocked_until=row["no_show_blocked_until"],
        no_show_blocked_at=row["no_show_blocked_at"],
        no_show_unblocked_at=row["no_show_unblocked_at"],
        no_show_unblocked_by=row["no_show_unblocked_by"],
    )


class NoShowService:
    """Service for no-show reporting and patient blocks."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    @staticmethod
    def _require(context: StaffContext, capability: Capability) -> None:
        if not context.can(capability):
            raise ForbiddenException(f"Missing permission: {capability.value}")

    async def no_show_report(
        self,
        context: StaffContext,
        period: ReportPeriod,
        now: datetime,
    ) -> NoShowReportResponse:
        """
        Build the no-show report for a clinic and period.

        Block status is evaluated against ``now`` on every call.

        Raises:
            ForbiddenException: If the staff member cannot view reports
        """
        self._require(context, Capability.VIEW_REPORTS)
        start, end = resolve_period(period, clinic_today(now, settings.clinic_timezone))

        blocked_stmt = (
            select(func.count())
            .select_from(patients)
            .where(
                and_(
                    patients.c.clinic_id == context.clinic_id,
                    patients.c.no_show_blocked_until.is_not(None),
                    patients.c.no_show_blocked_until > now,
                )
            )
        )

        async with translate_store_errors(
            self.db, "no_show_report", clinic_id=str(context.clinic_id)
        ):
            facts = await load_appointment_facts(self.db, context.clinic_id, start, end)
            blocked_count = (await self.db.execute(blocked_stmt)).scalar() or 0

        no_show_total = sum(1 for f in facts if f.status == AppointmentStatus.NO_SHOW)

        return NoShowReportResponse(
            period=period,
            start_date=start,
            end_date=end,
            stats=NoShowStats(
                total=len(facts),
                no_shows=no_show_total,
                rate=no_show_rate(no_show_total, len(facts)),
                blocked_patients=blocked_count,
            ),
            patients=[
                NoShowPatient(
                    patient_id=s.patient_id,
                    name=s.name,
                    phone=s.phone,
                    no_show_count=s.no_show_count,
                    last_no_show=s.last_no_show,
                    professional_name=s.professional_name,
                    is_blocked=s.is_blocked,
                    blocked_until=s.blocked_until,
                )
                for s in summarize_no_shows(facts, now)
            ],
            chart=[DailyCount(day=day, count=count) for day, count in no_shows_by_day(facts)],
        )

    async def list_blocked_patients(
        self,
        context: StaffContext,
        now: datetime,
    ) -> BlockedPatientListResponse:
        """Patients whose block expiry is still in the future."""
        self._require(context, Capability.VIEW_REPORTS)

        stmt = (
            select(
                patients.c.id,
                patients.c.name,
                patients.c.phone,
                patients.c.no_show_blocked_until,
                patients.c.no_show_blocked_at,
                professionals.c.name.label("professional_name"),
            )
            .select_from(
                patients.outerjoin(
                    professionals,
                    professionals.c.id == patients.c.no_show_blocked_professional_id,
                )
            )
            .where(
                and_(
                    patients.c.clinic_id == context.clinic_id,
                    patients.c.no_show_blocked_until > now,
                )
            )
            .order_by(patients.c.no_show_blocked_until)
        )

        async with translate_store_errors(
            self.db, "list_blocked_patients", clinic_id=str(context.clinic_id)
        ):
            rows = (await self.db.execute(stmt)).mappings().all()

        items = [
            BlockedPatient(
                id=row["id"],
                name=row["name"],
                phone=row["phone"],
                blocked_until=row["no_show_blocked_until"],
                blocked_at=row["no_show_blocked_at"],
                professional_name=row["professional_name"] or PLACEHOLDER,
            )
            for row in rows
            if is_blocked(row["no_show_blocked_until"], now)
        ]
        return BlockedPatientListResponse(total=len(items), items=items)

    async def unblock_patient(
        self,
        context: StaffContext,
        patient_id: UUID,
        now: datetime,
    ) -> PatientBlockStatus:
        """
        Lift a patient's no-show block and stamp who did it.

        A patient without a recorded block is returned unchanged, so the
        previous audit stamps survive.

        Raises:
            ForbiddenException: If the staff member is not a clinic admin
            NotFoundException: If the patient does not belong to the clinic
            ConflictException: If the block changed after it was read
        """
        self._require(context, Capability.ADMIN)

        lookup = select(patients).where(
            and_(patients.c.id == patient_id, patients.c.clinic_id == context.clinic_id)
        )

        async with translate_store_errors(self.db, "unblock_patient", patient_id=str(patient_id)):
            row = (await self.db.execute(lookup)).mappings().first()
            if row is None:
                raise NotFoundException("Patient not found")

            seen_until = row["no_show_blocked_until"]
            if seen_until is None:
                return _block_status(row, now)

            # Only the block that was read may be lifted
            stmt = (
                update(patients)
                .where(
                    and_(
                        patients.c.id == patient_id,
                        patients.c.no_show_blocked_until == seen_until,
                    )
                )
                .values(
                    no_show_blocked_until=None,
                    no_show_unblocked_at=now,
                    no_show_unblocked_by=context.user_id,
                    updated_at=now,
                )
                .returning(patients)
            )
            result = await self.db.execute(stmt)
            updated = result.mappings().first()
            await self.db.commit()

            if updated is None:
                current = (await self.db.execute(lookup)).mappings().first()
                if current is None:
                    raise NotFoundException("Patient not found")
                if current["no_show_blocked_until"] is None:
                    return _block_status(current, now)

                logger.warning(
                    "patient_block_changed_concurrently",
                    patient_id=str(patient_id),
                    seen_blocked_until=str(seen_until),
                    current_blocked_until=str(current["no_show_blocked_until"]),
                )
                raise ConflictException(
                    "Patient block changed, reload before unblocking",
                    details={"no_show_blocked_until": str(current["no_show_blocked_until"])},
                )

        logger.info(
            "patient_unblocked",
            patient_id=str(patient_id),
            clinic_id=str(context.clinic_id),
            unblocked_by=str(context.user_id),
            previous_blocked_until=str(seen_until),
        )
        return _block_status(updated, now)
