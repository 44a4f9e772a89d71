from sqlalchemy.ext.asyncio import AsyncEngine

from usertx.core.config import Settings
from usertx.db.session import create_session_factory
from usertx.repositories.base import EngineBackend, StorageBackend, UserRepository
from usertx.repositories.core import CoreBackend
from usertx.repositories.driver import DriverBackend
from usertx.repositories.orm import OrmBackend
from usertx.schemas import BackendKind


def build_backend(kind: str, engine: AsyncEngine, *, assume_contiguous_ids: bool = False) -> StorageBackend:
    """Bind the storage mechanism named by ``kind`` to ``engine``."""
    try:
        kind = BackendKind(kind)
    except ValueError:
        raise ValueError(f"Unknown backend {kind!r}, expected one of {[k.value for k in BackendKind]}") from None
    if kind is BackendKind.ORM:
        return OrmBackend(create_session_factory(engine))
    if kind is BackendKind.CORE:
        return CoreBackend(engine)
    return DriverBackend(engine, assume_contiguous_ids=assume_contiguous_ids)


def build_repository(settings: Settings, engine: AsyncEngine) -> UserRepository:
    """Create the untransacted user repository described by ``settings``."""
    backend = build_backend(
        settings.BACKEND,
        engine,
        assume_contiguous_ids=settings.ASSUME_CONTIGUOUS_IDS,
    )
    return UserRepository(backend, statement_timeout=settings.STATEMENT_TIMEOUT)


__all__ = [
    "CoreBackend",
    "DriverBackend",
    "EngineBackend",
    "OrmBackend",
    "StorageBackend",
    "UserRepository",
    "build_backend",
    "build_repository",
]
