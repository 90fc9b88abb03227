"""Report schemas."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class ReportPeriod(str, Enum):
    """Fixed period options offered by the report pages."""

    CURRENT = "current"
    LAST = "last"
    LAST_3 = "last3"
    LAST_6 = "last6"


class NoShowStats(BaseModel):
    """Headline numbers of the no-show report."""

    total: int
    no_shows: int
    rate: float
    blocked_patients: int


class NoShowPatient(BaseModel):
    """A patient with at least one no-show in the period."""

    patient_id: UUID
    name: str
    phone: str
    no_show_count: int
    last_no_show: date
    professional_name: str
    is_blocked: bool
    blocked_until: datetime | None = None


class DailyCount(BaseModel):
    """Number of no-shows on one day."""

    day: date
    count: int


class NoShowReportResponse(BaseModel):
    """No-show report for one clinic and period."""

    period: ReportPeriod
    start_date: date
    end_date: date
    stats: NoShowStats
    patients: list[NoShowPatient]
    chart: list[DailyCount]


class ProfessionalProductivity(BaseModel):
    """Per-professional figures of the productivity report."""

    professional_id: UUID | None
    name: str
    specialty: str
    total_appointments: int
    completed: int
    cancelled: int
    no_show: int
    revenue: float
    avg_duration: int
    completion_rate: int


class ProductivityTotals(BaseModel):
    """Sums across all professionals."""

    appointments: int
    completed: int
    cancelled: int
    no_show: int
    revenue: float


class DailyBreakdown(BaseModel):
    """Appointment outcomes on one day."""

    day: date
    total: int
    completed: int
    cancelled: int
    no_show: int


class ProductivityReportResponse(BaseModel):
    """Productivity report for one clinic and period."""

    period: ReportPeriod
    start_date: date
    end_date: date
    professionals: list[ProfessionalProductivity]
    totals: ProductivityTotals
    by_day: list[DailyBreakdown]
