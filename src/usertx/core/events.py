"""
life span events
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from usertx.core.config import Settings
from usertx.db.init_db import create_schema
from usertx.db.session import create_engine_from_settings
from usertx.repositories import build_repository
from usertx.services.user_service import UserService

logger = logging.getLogger(__name__)


def build_lifespan(settings: Settings):
    """Return the lifespan handler wiring the engine and user service for ``settings``."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """life span events"""
        engine = create_engine_from_settings(settings)
        try:
            await create_schema(engine, reset=settings.SCHEMA_RESET)
            app.state.engine = engine
            app.state.user_service = UserService(build_repository(settings, engine))
            logger.info(f"Using {settings.BACKEND} backend on {engine.url.render_as_string()}")
            yield
        finally:
            await engine.dispose()
            logging.info("lifespan shutdown")

    return lifespan
