"""
Health check endpoints
"""
from fastapi import APIRouter, Depends
from pathlib import Path
import time

from ..config import settings
from ..dependencies import get_session_manager
from ..services.session_manager import SessionManager

router = APIRouter()

# Track startup time
_startup_time = time.time()


@router.get("/health")
async def health_check(manager: SessionManager = Depends(get_session_manager)):
    """
    Basic health check endpoint.
    Returns service status, uptime, and open session count.
    """
    return {
        "status": "healthy",
        "version": "1.0.0",
        "uptime_seconds": round(time.time() - _startup_time, 2),
        "sessions": manager.count()
    }


@router.get("/health/ready")
async def readiness_check():
    """
    Readiness check for container orchestration.
    Verifies the API key is configured and the logs directory exists.
    """
    checks = {
        "api_key": bool(settings.GEMINI_API_KEY),
        "logs_dir": Path(settings.LOGS_DIR).exists() or not settings.SESSION_LOGS_ENABLED
    }

    return {
        "ready": all(checks.values()),
        "checks": checks
    }


@router.get("/health/live")
async def liveness_check():
    """
    Liveness check - simple ping to verify service is running.
    """
    return {"alive": True}
