"""Patient no-show block endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from app.dependencies import ClinicAdmin, DatabaseSession, Now, ReportViewer
from app.schemas.patients import BlockedPatientListResponse, PatientBlockStatus
from app.services.no_show_service import NoShowService

router = APIRouter()


@router.get(
    "/blocked",
    response_model=BlockedPatientListResponse,
    status_code=status.HTTP_200_OK,
    summary="List blocked patients",
)
async def list_blocked_patients(
    context: ReportViewer,
    db: DatabaseSession,
    now: Now,
) -> BlockedPatientListResponse:
    """Patients currently barred from self-service booking for missing appointments."""
    service = NoShowService(db)
    return await service.list_blocked_patients(context, now)


@router.post(
    "/{patient_id}/unblock",
    response_model=PatientBlockStatus,
    status_code=status.HTTP_200_OK,
    summary="Unblock patient",
)
async def unblock_patient(
    patient_id: UUID,
    context: ClinicAdmin,
    db: DatabaseSession,
    now: Now,
) -> PatientBlockStatus:
    """
    Lift a patient's no-show block.

    Requires the clinic admin permission. Records who unblocked and when.
    Answers 409 if the block changed since it was read.

    Args:
        patient_id: Patient ID
        context: Clinic owner, admin or platform super admin
        db: Database session
        now: Time of the action

    Returns:
        Patient block fields after the change
    """
    service = NoShowService(db)
    return await service.unblock_patient(context, patient_id, now)
