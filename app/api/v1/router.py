"""
API v1 router setup
Organized into: public (booking page) and dashboard (business staff) routes
"""
from fastapi import APIRouter

from app.api.v1.dashboard import appointments, business, calendar, clients, form_fields, services
from app.api.v1.public import booking

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (booking page)
# ============================================================================
api_v1_router.include_router(
    booking.router,
    prefix="/public",
    tags=["Public"]
)

# ============================================================================
# DASHBOARD ROUTES (business staff)
# ============================================================================
api_v1_router.include_router(
    business.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    appointments.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    calendar.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    services.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    clients.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    form_fields.router,
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
        "routes": {
            "public": "/api/v1/public/businesses/{slug}",
            "dashboard": "/api/v1/dashboard/businesses/{business_id}"
        }
    }
