"""
Gatherly Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() returns a configured FastAPI instance.
Who:   uvicorn (uvicorn gatherly.main:app) and the test suite.

Middleware chain (first to run listed first):
    RequestID → Logging → GZip → CORS → routes

Lifecycle:
    Startup:  logging, configuration check
    Shutdown: close the notifier transport, dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from gatherly import __version__
from gatherly.api.error_handlers import register_exception_handlers
from gatherly.config import settings
from gatherly.database import dispose_engine
from gatherly.middleware.logging import RequestLoggingMiddleware
from gatherly.middleware.request_id import RequestIDMiddleware
from gatherly.routes import events, health, invitations, users
from gatherly.services.notifications import notifier

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: 2026-01-01T12:00:00 [INFO] gatherly.services.base: CreateEvent completed in 4.2ms
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party chatter
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Gatherly Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # The server still answers /health so the problem is visible there
        logger.error("Configuration error: %s", str(e))

    logger.info("Notifier: %s", type(notifier).__name__)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Gatherly Backend shutting down...")
    await notifier.aclose()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Gatherly API",
        description=(
            "Household events: parents create events, invite household "
            "members, and invitees accept."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(users.router)
    app.include_router(events.router)
    app.include_router(invitations.router)
    app.include_router(health.router)

    return app


app = create_app()
