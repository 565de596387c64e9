"""Health check endpoint."""

import platform
import sys

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Service health, sweep loop status and item counts."""
    state = request.app.state
    return {
        "status": "healthy",
        "scheduler_running": state.scheduler.running,
        "sweeps": state.scheduler.sweeps,
        "tracked_items": state.engine.tracked_count(),
        "items": state.service.counts(),
        "python_version": sys.version,
        "platform": platform.platform(),
    }
