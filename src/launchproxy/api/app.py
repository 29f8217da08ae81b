"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from launchproxy.audit import AuditTrail
from launchproxy.chain import ChainClient, get_chain_client
from launchproxy.config import APP_VERSION, get_settings
from launchproxy.ledger.database import close_db, init_db
from launchproxy.notifications.telegram import close_bot
from launchproxy.services.recovery import RecoveryService
from launchproxy.utils.tasks import TaskSupervisor
from launchproxy.workflow import LaunchWorkflow

logger = logging.getLogger(__name__)

# Seconds to wait for background sweeps on shutdown
SHUTDOWN_DRAIN_TIMEOUT = 60.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    await init_db()
    yield
    # Shutdown
    await app.state.supervisor.drain(timeout=SHUTDOWN_DRAIN_TIMEOUT)
    await close_bot()
    await close_db()


def create_app(
    chain: Optional[ChainClient] = None,
    workflow: Optional[LaunchWorkflow] = None,
    recovery: Optional[RecoveryService] = None,
    supervisor: Optional[TaskSupervisor] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Components can be injected; anything missing is built from settings.
    """
    settings = get_settings()

    app = FastAPI(
        title="launchproxy API",
        description="Burner-wallet token launches with payment-gated agent dispatch",
        version=APP_VERSION,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    chain = chain or get_chain_client()
    supervisor = supervisor or TaskSupervisor(settings.background_max_concurrency)
    audit = AuditTrail()

    app.state.chain = chain
    app.state.supervisor = supervisor
    app.state.workflow = workflow or LaunchWorkflow(
        chain, settings=settings, audit=audit, supervisor=supervisor
    )
    app.state.recovery = recovery or RecoveryService(chain, audit=audit)

    # Register routes
    from launchproxy.api.routers import burners, launch
    from launchproxy.api.routes import health

    app.include_router(health.router, tags=["Health"])
    app.include_router(launch.router, prefix="/api/v1")
    app.include_router(burners.router, prefix="/api/v1")

    return app
