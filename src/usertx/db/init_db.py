import asyncio
import logging
import sys

from sqlalchemy.ext.asyncio import AsyncEngine

from usertx.core.config import Settings, configure_logging, settings as default_settings
from usertx.db.session import create_engine_from_settings
from usertx.models import Base

logger = logging.getLogger(__name__)


async def create_schema(engine: AsyncEngine, *, reset: bool = False) -> None:
    """Create the ``users`` and ``user_roles`` tables if they don't exist.

    Args:
        engine: Engine to create the tables on
        reset: Drop every table first. Destroys all data; development only.

    Raises:
        SQLAlchemyError: If database operation fails
    """
    async with engine.begin() as conn:
        if reset:
            logger.warning("Schema reset requested - dropping all tables on %s", engine.url.render_as_string())
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema is up to date")


async def init_db(settings: Settings) -> None:
    """Initialize the database described by ``settings``."""
    engine = create_engine_from_settings(settings)
    try:
        await create_schema(engine, reset=settings.SCHEMA_RESET)
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise
    finally:
        await engine.dispose()


def main() -> None:
    """Main function to run database initialization."""
    configure_logging(default_settings)
    try:
        asyncio.run(init_db(default_settings))
        print("✅ Database initialization completed successfully!")
    except Exception as e:
        print(f"❌ Database initialization failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
