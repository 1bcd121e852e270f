"""
API v1 Router

Audit endpoints are organization-scoped under /audit/organization/{organizationId}.
"""

from fastapi import APIRouter
from . import audit

router = APIRouter()

router.include_router(audit.router, prefix="/audit", tags=["Audit"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/audit/organization/{organizationId}/logs",
            "/audit/organization/{organizationId}/stats",
        ],
    }
