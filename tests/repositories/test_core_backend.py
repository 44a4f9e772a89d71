"""Core backend on dialects without executemany RETURNING."""

import pytest
import pytest_asyncio
from sqlalchemy import event

from usertx.repositories import CoreBackend, UserRepository

from tests.helpers.db import fetch_users


@pytest_asyncio.fixture
async def no_executemany_returning(engine, monkeypatch):
    monkeypatch.setattr(engine.sync_engine.dialect, "insert_executemany_returning", False)
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith("INSERT INTO users"):
            statements.append((statement, executemany))

    event.listen(engine.sync_engine, "before_cursor_execute", record)
    yield statements
    event.remove(engine.sync_engine, "before_cursor_execute", record)


@pytest.mark.asyncio
async def test_users_are_inserted_one_row_at_a_time(engine, no_executemany_returning):
    repo = UserRepository(CoreBackend(engine))
    await repo.create_user("existing")
    no_executemany_returning.clear()

    ids = await repo.create_user("a", "b", "c")

    assert ids == [2, 3, 4]
    assert await fetch_users(engine) == [(1, "existing"), (2, "a"), (3, "b"), (4, "c")]
    assert len(no_executemany_returning) == 3
    assert not any(executemany for _, executemany in no_executemany_returning)


@pytest.mark.asyncio
async def test_fallback_inside_transaction_rolls_back_together(engine, no_executemany_returning):
    repo = UserRepository(CoreBackend(engine))

    tx = await repo.start_tx()
    await tx.create_user("a", "b")
    with pytest.raises(RuntimeError):
        await tx.end_tx(RuntimeError("abort"))

    assert await fetch_users(engine) == []
