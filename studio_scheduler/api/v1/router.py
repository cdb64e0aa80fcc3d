"""
API v1 router setup
All scheduling routes live under /dashboard and require a JWT bearer token
"""
from fastapi import APIRouter

from studio_scheduler.api.v1.dashboard import appointments, availability, clients, schedule, waitlist

api_v1_router = APIRouter()

# ============================================================================
# DASHBOARD ROUTES (JWT authentication required)
# ============================================================================
api_v1_router.include_router(
    appointments.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    availability.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    clients.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    waitlist.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    schedule.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """
    API information and available endpoints.
    """
    return {
        "version": "1.0",
        "authentication": {
            "dashboard": "JWT Bearer token required (sub = user id, studio_id claim = tenant)"
        },
        "dashboard": [
            "/dashboard/appointments",
            "/dashboard/availability",
            "/dashboard/clients",
            "/dashboard/waitlist",
            "/dashboard/schedule"
        ]
    }
