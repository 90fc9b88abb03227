"""Read-only report queries over the appointment store."""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ForbiddenException
from app.core.no_show_policy import AppointmentFact, clinic_today, resolve_period
from app.core.permissions import Capability, StaffContext
from app.core.reporting import ProfessionalInfo, appointments_by_day, professional_productivity
from app.database import translate_store_errors
from app.models.appointments import appointments
from app.models.clinics import procedures, professionals
from app.models.patients import patients
from app.schemas.appointments import AppointmentStatus
from app.schemas.reports import (
    DailyBreakdown,
    ProductivityReportResponse,
    ProductivityTotals,
    ProfessionalProductivity,
    ReportPeriod,
)


async def load_appointment_facts(
    db: AsyncSession,
    clinic_id: UUID,
    start: date,
    end: date,
    professional_id: UUID | None = None,
) -> list[AppointmentFact]:
    """
    Fetch a clinic's appointments in ``[start, end]`` with their related names.

    Related rows are outer-joined so a missing patient, professional or
    procedure leaves the fields empty instead of dropping the appointment.
    """
    conditions = [
        appointments.c.clinic_id == clinic_id,
        appointments.c.appointment_date >= start,
        appointments.c.appointment_date <= end,
    ]
    if professional_id:
        conditions.append(appointments.c.professional_id == professional_id)

    stmt = (
        select(
            appointments.c.id,
            appointments.c.appointment_date,
            appointments.c.status,
            appointments.c.patient_id,
            appointments.c.professional_id,
            appointments.c.duration_minutes,
            patients.c.name.label("patient_name"),
            patients.c.phone.label("patient_phone"),
            patients.c.no_show_blocked_until,
            professionals.c.name.label("professional_name"),
            procedures.c.price.label("procedure_price"),
        )
        .select_from(
            appointments.outerjoin(patients, patients.c.id == appointments.c.patient_id)
            .outerjoin(professionals, professionals.c.id == appointments.c.professional_id)
            .outerjoin(procedures, procedures.c.id == appointments.c.procedure_id)
        )
        .where(and_(*conditions))
        .order_by(appointments.c.appointment_date, appointments.c.start_time)
    )

    result = await db.execute(stmt)
    return [
        AppointmentFact(
            appointment_id=row["id"],
            appointment_date=row["appointment_date"],
            status=AppointmentStatus(row["status"]),
            patient_id=row["patient_id"],
            patient_name=row["patient_name"],
            patient_phone=row["patient_phone"],
            blocked_until=row["no_show_blocked_until"],
            professional_id=row["professional_id"],
            professional_name=row["professional_name"],
            duration_minutes=row["duration_minutes"],
            procedure_price=(
                float(row["procedure_price"]) if row["procedure_price"] is not None else None
            ),
        )
        for row in result.mappings().all()
    ]


class ReportService:
    """Service for productivity reporting."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def productivity_report(
        self,
        context: StaffContext,
        period: ReportPeriod,
        now: datetime,
        professional_id: UUID | None = None,
    ) -> ProductivityReportResponse:
        """
        Appointment outcomes by professional and by day for a period.

        Args:
            context: Acting staff member
            period: Selected period option
            now: Current time, used to resolve the period
            professional_id: Optionally restrict to one professional

        Raises:
            ForbiddenException: If the staff member cannot view reports
        """
        if not context.can(Capability.VIEW_REPORTS):
            raise ForbiddenException("Missing permission: view_reports")

        start, end = resolve_period(period, clinic_today(now, settings.clinic_timezone))

        prof_conditions = [
            professionals.c.clinic_id == context.clinic_id,
            professionals.c.is_active.is_(True),
        ]
        if professional_id:
            prof_conditions.append(professionals.c.id == professional_id)

        prof_stmt = (
            select(professionals.c.id, professionals.c.name, professionals.c.specialty)
            .where(and_(*prof_conditions))
            .order_by(professionals.c.name)
        )

        async with translate_store_errors(
            self.db, "productivity_report", clinic_id=str(context.clinic_id)
        ):
            prof_rows = (await self.db.execute(prof_stmt)).mappings().all()
            facts = await load_appointment_facts(
                self.db, context.clinic_id, start, end, professional_id
            )

        rows = professional_productivity(
            [ProfessionalInfo(id=r["id"], name=r["name"], specialty=r["specialty"]) for r in prof_rows],
            facts,
        )

        return ProductivityReportResponse(
            period=period,
            start_date=start,
            end_date=end,
            professionals=[
                ProfessionalProductivity(
                    professional_id=r.professional_id,
                    name=r.name,
                    specialty=r.specialty,
                    total_appointments=r.total_appointments,
                    completed=r.completed,
                    cancelled=r.cancelled,
                    no_show=r.no_show,
                    revenue=r.revenue,
                    avg_duration=r.avg_duration,
                    completion_rate=r.completion_rate,
                )
                for r in rows
            ],
            totals=ProductivityTotals(
                appointments=sum(r.total_appointments for r in rows),
                completed=sum(r.completed for r in rows),
                cancelled=sum(r.cancelled for r in rows),
                no_show=sum(r.no_show for r in rows),
                revenue=round(sum(r.revenue for r in rows), 2),
            ),
            by_day=[
                DailyBreakdown(
                    day=d.day,
                    total=d.total,
                    completed=d.completed,
                    cancelled=d.cancelled,
                    no_show=d.no_show,
                )
                for d in appointments_by_day(facts)
            ],
        )
