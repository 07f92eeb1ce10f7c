"""API v1 router aggregator.

All v1 endpoint routers are included here and mounted at /api/v1.
"""

from fastapi import APIRouter

from booklink.api.v1 import bookings

router = APIRouter()

router.include_router(bookings.router, prefix="/booking", tags=["bookings"])
