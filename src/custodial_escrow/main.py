"""FastAPI application entry point for the custodial escrow.

Lifecycle:
    1. Startup: Initialize logging and the database (create tables in dev mode).
    2. Running: Serve REST API + MCP tools on a single Uvicorn process.
    3. Shutdown: Dispose of the database engine.

The MCP server is mounted at /mcp so agents can discover tools
alongside the REST API at /api/v1/*.

Run with:
    uvicorn custodial_escrow.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from custodial_escrow.config import get_settings
from custodial_escrow.logging_config import configure_logging, get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings = get_settings()

    configure_logging(settings)
    logger = get_logger(__name__)
    logger.info("app.starting", env=settings.app_env, debug=settings.app_debug)

    from custodial_escrow.infrastructure.database.engine import close_db, init_db

    await init_db()
    logger.info("app.started", host=settings.app_host, port=settings.app_port)

    yield

    logger.info("app.shutting_down")
    await close_db()
    logger.info("app.stopped")


def create_app(mount_mcp: bool = True) -> FastAPI:
    """Application factory: creates and configures the FastAPI app."""
    settings = get_settings()

    app = FastAPI(
        title="Custodial Escrow",
        description=(
            "Registers payer/payee agreements and holds the payer's "
            "deposit in custody."
        ),
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # --- Middleware ---
    from custodial_escrow.api.middleware import setup_middleware

    setup_middleware(app)

    # --- REST API Routes ---
    from custodial_escrow.api.routes.deals import router as deals_router
    from custodial_escrow.api.routes.health import router as health_router

    app.include_router(health_router)
    app.include_router(deals_router)

    # --- MCP Server (mounted as sub-application) ---
    if mount_mcp:
        from custodial_escrow.mcp_server.tools import mcp

        app.mount("/mcp", mcp.sse_app())

    return app


# The app instance used by Uvicorn
app = create_app()
