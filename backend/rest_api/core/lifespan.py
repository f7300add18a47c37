"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.infrastructure.db import engine, SessionLocal
from shared.config.settings import settings
from shared.config.logging import setup_logging, rest_api_logger as logger
from rest_api.models import Base
from rest_api.seed import seed
from ws_gateway.connection_manager import FanoutHub
from ws_gateway.routes import run_heartbeat_cleanup


def check_production_secrets() -> None:
    """Refuse to start in production with insecure configuration."""
    secret_errors = settings.validate_production_secrets()
    if not secret_errors:
        return
    for error in secret_errors:
        logger.error("Configuration error", error=error)
    if settings.environment == "production":
        raise RuntimeError(
            f"Production configuration errors: {'; '.join(secret_errors)}. "
            "Server will not start with insecure configuration."
        )
    logger.warning("Running with insecure defaults (acceptable for development only)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    setup_logging()
    check_production_secrets()

    logger.info("Starting REST API", port=settings.rest_api_port, env=settings.environment)

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    if settings.seed_on_startup:
        with SessionLocal() as db:
            seed(db)

    # Realtime fanout hub shared by REST routes and the /ws endpoint
    hub = FanoutHub()
    app.state.hub = hub
    cleanup_task = asyncio.create_task(run_heartbeat_cleanup(hub))
    logger.info("Realtime hub started")

    yield

    logger.info("Shutting down REST API")

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass

    closed = await hub.shutdown()
    logger.info("Realtime hub stopped", closed_connections=closed)
