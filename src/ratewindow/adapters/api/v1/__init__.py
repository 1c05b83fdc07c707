"""API v1 router configuration.
"""

from fastapi import APIRouter

from .protected import router as protected_router

api_router = APIRouter()

api_router.include_router(protected_router, tags=["rate-limited"])
