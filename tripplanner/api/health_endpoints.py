"""
Health check endpoint
"""
import time
from datetime import datetime, timezone

from fastapi import APIRouter

from tripplanner.config.settings import get_settings

router = APIRouter(tags=["health"])

# Application start time for uptime calculation
_app_start_time = time.time()


@router.get("/health")
async def health_check():
    """Basic liveness check with application name and version."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment.value,
        "uptime_seconds": round(time.time() - _app_start_time, 1),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
