import logging
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy import text

from usertx.api.api_v1.api import api_router
from usertx.api.deps import EngineDep
from usertx.core.config import Settings, configure_logging, settings as default_settings
from usertx.core.error_handlers import (
    general_exception_handler,
    repository_exception_handler,
    validation_exception_handler,
)
from usertx.core.errors import RepositoryError
from usertx.core.events import build_lifespan

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create FastAPI application."""
    settings = settings or default_settings
    app = FastAPI(
        lifespan=build_lifespan(settings),
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
    )

    # Health check endpoint
    @app.get("/healthz")
    async def health_check(engine: EngineDep):
        """Health check endpoint for container orchestration."""
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "service": settings.PROJECT_NAME,
                "backend": settings.BACKEND,
            }
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            raise HTTPException(
                status_code=503,
                detail="Service unhealthy"
            )

    # Add exception handlers
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(RepositoryError, repository_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("CORS Origins from settings: %s", settings.BACKEND_CORS_ORIGINS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,  # Cache preflight requests for 10 minutes
    )

    # Include the routers
    app.include_router(api_router, prefix=settings.API_V1_STR)

    return app


app = create_app()

if __name__ == "__main__":
    configure_logging(default_settings)
    uvicorn.run(app, host="localhost", port=default_settings.SERVER_PORT)
