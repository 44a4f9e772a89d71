"""Shared test fixtures."""

import pytest
import pytest_asyncio

from usertx.db.init_db import create_schema
from usertx.db.session import create_engine_from_settings
from usertx.repositories import UserRepository, build_backend

from tests.helpers.db import sqlite_settings
from tests.helpers.fake_backend import FakeBackend

BACKEND_KINDS = ["orm", "core", "driver"]


@pytest.fixture
def settings(tmp_path):
    return sqlite_settings(tmp_path)


@pytest_asyncio.fixture
async def engine(settings):
    engine = create_engine_from_settings(settings)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture(params=BACKEND_KINDS)
def backend_kind(request):
    return request.param


@pytest_asyncio.fixture
async def repo(engine, backend_kind):
    return UserRepository(build_backend(backend_kind, engine))


@pytest.fixture
def fake_backend():
    return FakeBackend()
