"""Health check endpoints."""

from fastapi import APIRouter, Request

from launchproxy.config import APP_VERSION, get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "launchproxy"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Health with redacted configuration and background task state."""
    settings = get_settings()
    supervisor = request.app.state.supervisor
    return {
        "status": "healthy",
        "service": "launchproxy",
        "version": APP_VERSION,
        "background": {
            "pending": supervisor.pending,
            "recent_failures": len(supervisor.failures),
        },
        "config": settings.get_safe_dict(),
    }
