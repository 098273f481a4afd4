"""
API routes for the proposal engine.
"""

from fastapi import APIRouter

from app.api import proposals

router = APIRouter()

# Include sub-routers
router.include_router(proposals.router, prefix="/proposals", tags=["proposals"])
