"""Tests for the no-show policy and report aggregations."""

from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

import pytest

from app.core.no_show_policy import (
    AppointmentFact,
    clinic_today,
    is_blocked,
    no_show_rate,
    no_shows_by_day,
    resolve_period,
    summarize_no_shows,
)
from app.core.reporting import (
    UNKNOWN_PROFESSIONAL,
    ProfessionalInfo,
    appointments_by_day,
    professional_productivity,
)
from app.schemas.appointments import AppointmentStatus as S
from app.schemas.reports import ReportPeriod

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def fact(patient_id, day, status=S.NO_SHOW, **kwargs) -> AppointmentFact:
    return AppointmentFact(
        appointment_id=uuid4(),
        appointment_date=day,
        status=status,
        patient_id=patient_id,
        **kwargs,
    )


@pytest.mark.parametrize(
    ("period", "today", "expected"),
    [
        (ReportPeriod.CURRENT, date(2024, 3, 15), (date(2024, 3, 1), date(2024, 3, 31))),
        (ReportPeriod.LAST, date(2024, 3, 15), (date(2024, 2, 1), date(2024, 2, 29))),
        (ReportPeriod.LAST, date(2024, 1, 10), (date(2023, 12, 1), date(2023, 12, 31))),
        (ReportPeriod.LAST_3, date(2024, 3, 15), (date(2024, 1, 1), date(2024, 3, 31))),
        (ReportPeriod.LAST_6, date(2024, 3, 15), (date(2023, 10, 1), date(2024, 3, 31))),
        (ReportPeriod.LAST_3, date(2024, 2, 29), (date(2023, 12, 1), date(2024, 2, 29))),
    ],
)
def test_resolve_period(period, today, expected):
    """Test period boundaries, including year wrap and leap February."""
    assert resolve_period(period, today) == expected


@pytest.mark.parametrize(
    "timezone, expected",
    [
        ("UTC", date(2024, 4, 1)),
        ("America/Sao_Paulo", date(2024, 3, 31)),
        ("Asia/Tokyo", date(2024, 4, 1)),
    ],
)
def test_clinic_today_uses_clinic_calendar(timezone, expected):
    now = datetime(2024, 4, 1, 0, 30, tzinfo=UTC)
    assert clinic_today(now, timezone) == expected


def test_month_end_evening_west_of_utc_stays_in_month():
    today = clinic_today(datetime(2024, 4, 1, 0, 30, tzinfo=UTC), "America/Sao_Paulo")

    assert resolve_period(ReportPeriod.CURRENT, today) == (date(2024, 3, 1), date(2024, 3, 31))
    assert resolve_period(ReportPeriod.LAST, today) == (date(2024, 2, 1), date(2024, 2, 29))


def test_no_show_rate_without_appointments_is_zero():
    """Test the zero-division boundary."""
    assert no_show_rate(0, 0) == 0.0


@pytest.mark.parametrize(("k", "n", "rate"), [(1, 3, 33.3), (2, 3, 66.7), (5, 5, 100.0), (0, 7, 0.0)])
def test_no_show_rate_rounds_to_one_decimal(k, n, rate):
    """Test rate = round(k / n * 100, 1)."""
    assert no_show_rate(k, n) == rate


def test_block_expiry():
    """Test past blocks are not reported, future blocks are."""
    assert not is_blocked(None, NOW)
    assert not is_blocked(NOW - timedelta(seconds=1), NOW)
    assert not is_blocked(NOW, NOW)
    assert is_blocked(NOW + timedelta(days=1), NOW)


def test_block_expiry_accepts_naive_store_values():
    """Test naive timestamps from the store are read as UTC."""
    assert is_blocked(datetime(2024, 3, 16), NOW)
    assert not is_blocked(datetime(2024, 3, 14), NOW)


def test_block_status_follows_the_clock():
    """Test the same record flips once now passes the expiry."""
    blocked_until = NOW + timedelta(hours=1)
    assert is_blocked(blocked_until, NOW)
    assert not is_blocked(blocked_until, NOW + timedelta(hours=2))


def test_grouping_orders_by_count_descending():
    """Test P2 (5 no-shows) is listed before P1 (3 no-shows)."""
    p1, p2 = uuid4(), uuid4()
    facts = [
        fact(p1, date(2024, 1, 5)),
        fact(p1, date(2024, 3, 10)),
        fact(p1, date(2024, 2, 2)),
        *[fact(p2, date(2024, 1, d)) for d in (3, 10, 17, 24)],
        fact(p2, date(2024, 2, 1)),
    ]

    summaries = summarize_no_shows(facts, NOW)

    assert [s.patient_id for s in summaries] == [p2, p1]
    assert summaries[0].no_show_count == 5
    assert summaries[0].last_no_show == date(2024, 2, 1)
    assert summaries[1].no_show_count == 3
    assert summaries[1].last_no_show == date(2024, 3, 10)


def test_grouping_ties_keep_encounter_order():
    """Test stable ordering for equal counts."""
    first, second = uuid4(), uuid4()
    facts = [fact(first, date(2024, 3, 1)), fact(second, date(2024, 3, 2))]

    assert [s.patient_id for s in summarize_no_shows(facts, NOW)] == [first, second]


def test_grouping_ignores_other_statuses_and_tracks_latest_professional():
    """Test only no-shows count and the latest one names the professional."""
    pid = uuid4()
    facts = [
        fact(pid, date(2024, 3, 1), professional_name="Dr. Early"),
        fact(pid, date(2024, 3, 9), status=S.COMPLETED, professional_name="Dr. Visit"),
        fact(pid, date(2024, 3, 5), professional_name="Dr. Late"),
    ]

    [summary] = summarize_no_shows(facts, NOW)

    assert summary.no_show_count == 2
    assert summary.last_no_show == date(2024, 3, 5)
    assert summary.professional_name == "Dr. Late"


def test_grouping_uses_placeholders_and_current_block_status():
    """Test missing patient data and block status evaluated at now."""
    pid = uuid4()
    facts = [fact(pid, date(2024, 3, 1), blocked_until=NOW + timedelta(days=30))]

    [summary] = summarize_no_shows(facts, NOW)
    assert summary.name == "-"
    assert summary.phone == "-"
    assert summary.is_blocked

    [later] = summarize_no_shows(facts, NOW + timedelta(days=31))
    assert not later.is_blocked


def test_no_shows_by_day_keeps_latest_days():
    """Test the chart series is ordered and truncated."""
    pid = uuid4()
    facts = [fact(pid, date(2024, 3, d)) for d in range(1, 21)] + [fact(pid, date(2024, 3, 20))]

    series = no_shows_by_day(facts, limit=14)

    assert len(series) == 14
    assert series[0] == (date(2024, 3, 7), 1)
    assert series[-1] == (date(2024, 3, 20), 2)


def test_productivity_tolerates_missing_professional():
    """Test appointments of a deleted professional get a placeholder row."""
    known = ProfessionalInfo(id=uuid4(), name="Dra. Ana", specialty=None)
    gone = uuid4()
    pid = uuid4()
    facts = [
        fact(pid, date(2024, 3, 1), S.COMPLETED, professional_id=known.id, procedure_price=100.0),
        fact(pid, date(2024, 3, 2), S.COMPLETED, professional_id=known.id, duration_minutes=50),
        fact(pid, date(2024, 3, 2), S.NO_SHOW, professional_id=known.id),
        fact(pid, date(2024, 3, 3), S.CANCELLED, professional_id=gone),
    ]

    rows = professional_productivity([known], facts)

    assert [r.name for r in rows] == ["Dra. Ana", UNKNOWN_PROFESSIONAL]
    ana = rows[0]
    assert ana.specialty == "General"
    assert (ana.total_appointments, ana.completed, ana.no_show) == (3, 2, 1)
    assert ana.revenue == 100.0
    assert ana.avg_duration == 40
    assert ana.completion_rate == 67
    assert rows[1].cancelled == 1
    assert rows[1].completion_rate == 0


def test_productivity_lists_idle_professionals():
    """Test an active professional with no appointments still appears."""
    idle = ProfessionalInfo(id=uuid4(), name="Dr. Idle")

    [row] = professional_productivity([idle], [])

    assert row.total_appointments == 0
    assert row.avg_duration == 0
    assert row.completion_rate == 0


def test_appointments_by_day():
    """Test daily outcome counts."""
    pid = uuid4()
    facts = [
        fact(pid, date(2024, 3, 2), S.COMPLETED),
        fact(pid, date(2024, 3, 1), S.NO_SHOW),
        fact(pid, date(2024, 3, 2), S.SCHEDULED),
    ]

    days = appointments_by_day(facts)

    assert [d.day for d in days] == [date(2024, 3, 1), date(2024, 3, 2)]
    assert (days[1].total, days[1].completed) == (2, 1)
    assert days[0].no_show == 1
