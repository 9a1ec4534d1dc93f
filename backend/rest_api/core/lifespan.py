"""Startup and shutdown for the REST API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from rest_api.models import Base
from shared.config.logging import rest_api_logger as logger
from shared.config.logging import setup_logging
from shared.config.settings import settings
from shared.infrastructure.db import engine


def _check_configuration() -> None:
    problems = settings.validate_production_secrets()
    for problem in problems:
        logger.error("Configuration error", problem=problem)
    if not problems:
        return
    if settings.environment == "production":
        raise RuntimeError("Refusing to start with insecure configuration: " + "; ".join(problems))
    logger.warning("Insecure defaults in use", environment=settings.environment)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    _check_configuration()

    Base.metadata.create_all(bind=engine)
    logger.info("REST API started", port=settings.rest_api_port, environment=settings.environment)

    yield

    engine.dispose()
    logger.info("REST API stopped")
