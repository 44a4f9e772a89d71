import pytest

from usertx.db.session import create_engine_from_settings
from usertx.repositories import (
    CoreBackend,
    DriverBackend,
    OrmBackend,
    build_backend,
    build_repository,
)

from tests.helpers.db import sqlite_settings


@pytest.fixture
def lazy_engine(tmp_path):
    """Engine that has not opened a connection yet."""
    return create_engine_from_settings(sqlite_settings(tmp_path))


@pytest.mark.parametrize(
    "kind, backend_type",
    [("orm", OrmBackend), ("core", CoreBackend), ("driver", DriverBackend)],
)
def test_build_backend(lazy_engine, kind, backend_type):
    assert isinstance(build_backend(kind, lazy_engine), backend_type)


def test_build_backend_rejects_unknown_kind(lazy_engine):
    with pytest.raises(ValueError, match="Unknown backend"):
        build_backend("gorm", lazy_engine)


def test_build_repository_applies_settings(lazy_engine, tmp_path):
    settings = sqlite_settings(
        tmp_path, BACKEND="driver", STATEMENT_TIMEOUT=3, ASSUME_CONTIGUOUS_IDS=True
    )

    repo = build_repository(settings, lazy_engine)

    assert isinstance(repo.backend, DriverBackend)
    assert repo.backend.assume_contiguous_ids is True
    assert repo.statement_timeout == 3
    assert not repo.in_transaction
