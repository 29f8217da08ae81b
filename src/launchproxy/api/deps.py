"""Shared FastAPI dependencies."""

import logging
from typing import Optional

from fastapi import Cookie, Header, HTTPException, Request

from launchproxy.config import get_settings
from launchproxy.crypto import SessionData, decode_session
from launchproxy.services.recovery import RecoveryService
from launchproxy.workflow import LaunchWorkflow

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"


async def require_session(
    x_session_token: Optional[str] = Header(None),
    session: Optional[str] = Cookie(None),
) -> SessionData:
    """Resolve the requester from the session header or cookie."""
    token = x_session_token or session
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized: No session found. Please reconnect.")

    resolved = decode_session(token)
    if resolved is None:
        raise HTTPException(status_code=401, detail="Unauthorized: Invalid session. Please reconnect.")
    return resolved


async def require_admin_token(x_admin_token: str = Header(None)) -> bool:
    """Verify admin token from header.

    If ADMIN_TOKEN is not set, allows access outside production only.
    """
    settings = get_settings()

    if not settings.admin_token:
        if settings.is_production:
            raise HTTPException(status_code=401, detail="Admin token not configured")
        return True

    if x_admin_token != settings.admin_token:
        raise HTTPException(status_code=401, detail="Invalid admin token")

    return True


def get_workflow(request: Request) -> LaunchWorkflow:
    return request.app.state.workflow


def get_recovery(request: Request) -> RecoveryService:
    return request.app.state.recovery
