"""
Health check endpoint for monitoring.
"""

from __future__ import annotations

from fastapi import APIRouter

from rrchat.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {"status": "ok", "service": settings.app_name, "environment": settings.environment}
