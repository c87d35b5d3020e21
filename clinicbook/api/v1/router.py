"""API v1 router configuration."""

from fastapi import APIRouter

from clinicbook.api.v1.endpoints import bookings, health, providers, schedule

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(providers.router, prefix="/providers", tags=["Providers"])
api_router.include_router(schedule.router, prefix="/schedule", tags=["Schedule"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
