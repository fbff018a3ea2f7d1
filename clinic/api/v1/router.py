"""API v1 router configuration."""

from fastapi import APIRouter

from clinic.api.v1.endpoints import doctors, health, patients, staff

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(patients.router, prefix="/patient", tags=["Patient"])
api_router.include_router(doctors.router, prefix="/doctor", tags=["Doctor"])
api_router.include_router(staff.router, prefix="/staff", tags=["Staff"])
