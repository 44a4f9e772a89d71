"""
Demo: one untransacted user creation, then five concurrent admin creations.

    python -m usertx.demo
"""
import asyncio
import logging
import sys

from usertx.core.config import Settings, configure_logging, settings as default_settings
from usertx.core.errors import RepositoryError
from usertx.db.init_db import create_schema
from usertx.db.session import create_engine_from_settings
from usertx.repositories import build_repository
from usertx.services.user_service import UserService

logger = logging.getLogger(__name__)

CONCURRENT_ADMINS = 5


async def _run_steps(service: UserService) -> int:
    failures = 0

    # without transaction
    try:
        await service.create_user("yuki")
    except RepositoryError as e:
        logger.error(f"create_user failed: {e}")
        failures += 1

    # with concurrency and transaction
    results = await asyncio.gather(
        *(service.create_admin_user(f"user {i}") for i in range(CONCURRENT_ADMINS)),
        return_exceptions=True,
    )
    for i, result in enumerate(results):
        if isinstance(result, BaseException):
            logger.error(f"create_admin_user('user {i}') failed: {result!r}")
            failures += 1
    return failures


async def run_demo(settings: Settings) -> int:
    """Run the demo against the database in ``settings``; returns the number of failed calls."""
    engine = create_engine_from_settings(settings)
    try:
        await create_schema(engine, reset=settings.SCHEMA_RESET)
        service = UserService(build_repository(settings, engine))
        return await asyncio.wait_for(_run_steps(service), settings.DEMO_TIMEOUT)
    except asyncio.TimeoutError:
        logger.error(f"Demo did not finish within {settings.DEMO_TIMEOUT}s")
        return CONCURRENT_ADMINS + 1
    finally:
        await engine.dispose()


def main() -> None:
    configure_logging(default_settings)
    failures = asyncio.run(run_demo(default_settings))
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
