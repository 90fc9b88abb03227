"""Report endpoints (require the view_reports permission)."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import DatabaseSession, Now, ReportViewer
from app.schemas.reports import NoShowReportResponse, ProductivityReportResponse, ReportPeriod
from app.services.no_show_service import NoShowService
from app.services.report_service import ReportService

router = APIRouter()


@router.get(
    "/no-show",
    response_model=NoShowReportResponse,
    status_code=status.HTTP_200_OK,
    summary="No-show report",
)
async def no_show_report(
    context: ReportViewer,
    db: DatabaseSession,
    now: Now,
    period: ReportPeriod = Query(ReportPeriod.CURRENT),
) -> NoShowReportResponse:
    """
    No-show statistics, repeat offenders and daily counts for a period.

    Args:
        context: Staff member allowed to view reports
        db: Database session
        now: Current time, used for the period and block status
        period: current, last, last3 or last6

    Returns:
        No-show report
    """
    service = NoShowService(db)
    return await service.no_show_report(context, period, now)


@router.get(
    "/productivity",
    response_model=ProductivityReportResponse,
    status_code=status.HTTP_200_OK,
    summary="Productivity report",
)
async def productivity_report(
    context: ReportViewer,
    db: DatabaseSession,
    now: Now,
    period: ReportPeriod = Query(ReportPeriod.CURRENT),
    professional_id: UUID | None = Query(None),
) -> ProductivityReportResponse:
    """Appointment outcomes per professional and per day."""
    service = ReportService(db)
    return await service.productivity_report(context, period, now, professional_id)
