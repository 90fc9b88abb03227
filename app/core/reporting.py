"""Read-only aggregations for the productivity report."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from app.core.no_show_policy import AppointmentFact
from app.schemas.appointments import AppointmentStatus

UNKNOWN_PROFESSIONAL = "Unknown professional"
DEFAULT_SPECIALTY = "General"
DEFAULT_DURATION_MINUTES = 30


@dataclass(frozen=True)
class ProfessionalInfo:
    id: UUID
    name: str
    specialty: str | None = None


@dataclass
class ProductivityRow:
    professional_id: UUID | None
    name: str
    specialty: str
    total_appointments: int = 0
    completed: int = 0
    cancelled: int = 0
    no_show: int = 0
    revenue: float = 0.0
    avg_duration: int = 0
    completion_rate: int = 0
    _duration_sum: int = field(default=0, repr=False)


@dataclass
class DayRow:
    day: date
    total: int = 0
    completed: int = 0
    cancelled: int = 0
    no_show: int = 0


def professional_productivity(
    professionals: Iterable[ProfessionalInfo],
    facts: Iterable[AppointmentFact],
) -> list[ProductivityRow]:
    """
    Per-professional outcome counts for a period.

    Every listed professional gets a row, even with no appointments.
    Appointments whose professional is not listed still get a row, under
    the name from the appointment or a placeholder.
    """
    rows: dict[UUID | None, ProductivityRow] = {}
    for prof in professionals:
        rows[prof.id] = ProductivityRow(
            professional_id=prof.id,
            name=prof.name,
            specialty=prof.specialty or DEFAULT_SPECIALTY,
        )

    for fact in facts:
        row = rows.get(fact.professional_id)
        if row is None:
            row = rows[fact.professional_id] = ProductivityRow(
                professional_id=fact.professional_id,
                name=fact.professional_name or UNKNOWN_PROFESSIONAL,
                specialty=DEFAULT_SPECIALTY,
            )

        row.total_appointments += 1
        if fact.status == AppointmentStatus.COMPLETED:
            row.completed += 1
            row.revenue += fact.procedure_price or 0.0
            row._duration_sum += fact.duration_minutes or DEFAULT_DURATION_MINUTES
        elif fact.status == AppointmentStatus.CANCELLED:
            row.cancelled += 1
        elif fact.status == AppointmentStatus.NO_SHOW:
            row.no_show += 1

    for row in rows.values():
        if row.completed:
            row.avg_duration = round(row._duration_sum / row.completed)
        if row.total_appointments:
            row.completion_rate = round(row.completed / row.total_appointments * 100)
        row.revenue = round(row.revenue, 2)

    return sorted(rows.values(), key=lambda r: r.completed, reverse=True)


def appointments_by_day(facts: Iterable[AppointmentFact]) -> list[DayRow]:
    """Outcome counts per appointment date, oldest first."""
    days: dict[date, DayRow] = {}
    for fact in facts:
        row = days.setdefault(fact.appointment_date, DayRow(day=fact.appointment_date))
        row.total += 1
        if fact.status == AppointmentStatus.COMPLETED:
            row.completed += 1
        elif fact.status == AppointmentStatus.CANCELLED:
            row.cancelled += 1
        elif fact.status == AppointmentStatus.NO_SHOW:
            row.no_show += 1

    return [days[d] for d in sorted(days)]
