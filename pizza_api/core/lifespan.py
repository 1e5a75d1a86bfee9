"""
Startup and shutdown for the API process.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from pizza_api.models import Base
from pizza_api.realtime.factory import build_connection_registry
from pizza_api.seed import seed
from pizza_shared.config.logging import api_logger as logger, setup_logging
from pizza_shared.config.settings import settings
from pizza_shared.infrastructure.db import SessionLocal, engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging, check secrets, create tables, seed, start the notification registry."""
    setup_logging()

    secret_errors = settings.validate_production_secrets()
    if secret_errors:
        logger.error("Insecure configuration", problems=secret_errors)
        if settings.environment == "production":
            raise RuntimeError("Refusing to start in production: " + "; ".join(secret_errors))
        logger.warning("Running with insecure defaults (acceptable for development only)")

    logger.info("Starting pizza API", port=settings.port, env=settings.environment)

    Base.metadata.create_all(bind=engine)
    logger.info("Schema ready", tables=len(Base.metadata.tables))

    if settings.seed_on_startup:
        with SessionLocal() as db:
            seed(db)

    # Tests may install their own registry before startup
    if getattr(app.state, "connections", None) is None:
        app.state.connections = build_connection_registry(settings)
    await app.state.connections.start()
    logger.info("Notification registry started", backend=settings.notification_backend)

    yield

    logger.info("Shutting down pizza API")
    await app.state.connections.close()
    logger.info("Notification registry closed")
