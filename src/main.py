"""FastAPI application entry point — wires everything together.

Usage:
    python -m src.main

The permission catalog, guard, store and audit trail are built once in
the lifespan and shared through `app.state.action_service`.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from src.admin.api import party_router, router as admin_router
from src.admin.error_handlers import register_error_handlers
from src.admin.service import AdminActionService
from src.config import settings
from src.db.engine import async_session_factory, db_lifespan
from src.db.store import SqlActorDirectory, SqlEntityStore
from src.escrow.state_machine import TransactionStateMachine
from src.security.audit import SqlAuditTrail
from src.security.guard import AuthorizationGuard
from src.security.permissions import default_catalog

# ── Logging setup ────────────────────────────────────────────────────

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    stream=sys.stdout,
)
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = logging.getLogger(__name__)


def build_action_service() -> AdminActionService:
    """Assemble the service from its collaborators."""
    catalog = default_catalog()
    guard = AuthorizationGuard(
        catalog,
        SqlActorDirectory(async_session_factory),
        top_level_role=settings.security.top_level_role,
    )
    return AdminActionService(
        guard=guard,
        store=SqlEntityStore(async_session_factory),
        audit=SqlAuditTrail(async_session_factory),
        state_machine=TransactionStateMachine(),
        list_limit=settings.admin.list_limit,
    )


# ── FastAPI lifespan ─────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup and shutdown lifecycle."""
    logger.info("Starting escrow admin API (env=%s)", settings.environment)

    async with db_lifespan():
        logger.info("Database initialized")

        app.state.action_service = build_action_service()
        logger.info("Admin action service ready (top-level role=%s)", settings.security.top_level_role)

        try:
            yield
        finally:
            logger.info("Shutting down escrow admin API...")

    logger.info("Escrow admin API shutdown complete")


# ── FastAPI app ──────────────────────────────────────────────────────

app = FastAPI(
    title="Escrow Admin API",
    version="0.1.0",
    lifespan=lifespan,
)
register_error_handlers(app)
app.include_router(admin_router)
app.include_router(party_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "ok", "environment": settings.environment}


if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
    )
