"""
No-show accrual and blocking policy.

Pure functions over appointment rows. The current time is always passed in
by the caller so results can be recomputed on every read.
"""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from app.schemas.appointments import AppointmentStatus
from app.schemas.reports import ReportPeriod

PLACEHOLDER = "-"


@dataclass(frozen=True)
class AppointmentFact:
    """One appointment as seen by the report queries."""

    appointment_id: UUID
    appointment_date: date
    status: AppointmentStatus
    patient_id: UUID
    patient_name: str | None = None
    patient_phone: str | None = None
    blocked_until: datetime | None = None
    professional_id: UUID | None = None
    professional_name: str | None = None
    duration_minutes: int | None = None
    procedure_price: float | None = None


@dataclass
class PatientNoShowSummary:
    """Running no-show tally for one patient."""

    patient_id: UUID
    name: str
    phone: str
    no_show_count: int
    last_no_show: date
    professional_name: str
    is_blocked: bool
    blocked_until: datetime | None


def _month_start(year: int, month: int) -> date:
    return date(year, month, 1)


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def resolve_period(period: ReportPeriod, today: date) -> tuple[date, date]:
    """
    Inclusive date range for a report period, relative to ``today``.

    Args:
        period: Selected period option
        today: Current clinic date

    Returns:
        (start, end) covering whole calendar months
    """
    year, month = today.year, today.month

    if period == ReportPeriod.LAST:
        year, month = _shift_month(year, month, -1)
        return _month_start(year, month), _month_end(year, month)

    months_back = {ReportPeriod.CURRENT: 0, ReportPeriod.LAST_3: 2, ReportPeriod.LAST_6: 5}[period]
    start_year, start_month = _shift_month(year, month, -months_back)
    return _month_start(start_year, start_month), _month_end(year, month)


def no_show_rate(no_shows: int, total: int) -> float:
    """Percentage of no-shows rounded to one decimal; 0 when there is nothing to count."""
    if total <= 0:
        return 0.0
    return round(no_shows / total * 100, 1)


def clinic_today(now: datetime, timezone: str) -> date:
    """Calendar date at the clinic at instant ``now``."""
    return now.astimezone(ZoneInfo(timezone)).date()


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps read from the store as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def is_blocked(blocked_until: datetime | None, now: datetime) -> bool:
    """A patient is blocked while the block expiry lies strictly in the future."""
    if blocked_until is None:
        return False
    return as_utc(blocked_until) > as_utc(now)


def summarize_no_shows(
    facts: Iterable[AppointmentFact],
    now: datetime,
) -> list[PatientNoShowSummary]:
    """
    Group no-show appointments by patient.

    Patients keep the order in which they were first seen; the final sort by
    count is stable, so ties preserve that order.
    """
    summaries: dict[UUID, PatientNoShowSummary] = {}

    for fact in facts:
        if fact.status != AppointmentStatus.NO_SHOW:
            continue

        existing = summaries.get(fact.patient_id)
        if existing is None:
            summaries[fact.patient_id] = PatientNoShowSummary(
                patient_id=fact.patient_id,
                name=fact.patient_name or PLACEHOLDER,
                phone=fact.patient_phone or PLACEHOLDER,
                no_show_count=1,
                last_no_show=fact.appointment_date,
                professional_name=fact.professional_name or PLACEHOLDER,
                is_blocked=is_blocked(fact.blocked_until, now),
                blocked_until=fact.blocked_until,
            )
            continue

        existing.no_show_count += 1
        if fact.appointment_date > existing.last_no_show:
            existing.last_no_show = fact.appointment_date
            existing.professional_name = fact.professional_name or PLACEHOLDER

    return sorted(summaries.values(), key=lambda s: s.no_show_count, reverse=True)


def no_shows_by_day(facts: Iterable[AppointmentFact], limit: int = 14) -> list[tuple[date, int]]:
    """No-show counts per day, oldest first, keeping the most recent ``limit`` days."""
    counts: dict[date, int] = {}
    for fact in facts:
        if fact.status == AppointmentStatus.NO_SHOW:
            counts[fact.appointment_date] = counts.get(fact.appointment_date, 0) + 1

    ordered = sorted(counts.items())
    return ordered[-limit:] if limit else ordered
