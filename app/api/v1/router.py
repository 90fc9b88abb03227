"""API v1 router configuration."""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    appointments,
    confirmation,
    health,
    patients,
    reports,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(confirmation.router, prefix="/confirm", tags=["Confirmation"])
api_router.include_router(
    appointments.router,
    prefix="/clinics/{clinic_id}/appointments",
    tags=["Appointments"],
)
api_router.include_router(
    reports.router,
    prefix="/clinics/{clinic_id}/reports",
    tags=["Reports"],
)
api_router.include_router(
    patients.router,
    prefix="/clinics/{clinic_id}/patients",
    tags=["Patients"],
)
