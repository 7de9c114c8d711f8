"""
API v1 Router

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from authcore.api.v1.endpoints import auth

router = APIRouter()

# Include authentication routes
router.include_router(auth.router)
