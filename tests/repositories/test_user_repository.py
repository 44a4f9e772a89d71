"""UserRepository behaviour against every storage backend on SQLite."""

import pytest

from usertx.core.errors import ConstraintError, InvalidStateError
from usertx.schemas import TxState, UserRoleAssignment

from tests.helpers.db import fetch_user_roles, fetch_users


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, 1, 3, 25])
async def test_create_user_returns_one_fresh_id_per_name(repo, engine, count):
    names = [f"user {i}" for i in range(count)]

    ids = await repo.create_user(*names)

    assert len(ids) == count
    assert len(set(ids)) == count
    assert await fetch_users(engine) == list(zip(ids, names))


@pytest.mark.asyncio
async def test_create_user_without_transaction_is_visible(repo, engine):
    ids = await repo.create_user("yuki")

    assert await fetch_users(engine) == [(ids[0], "yuki")]
    assert repo.state is TxState.IDLE


@pytest.mark.asyncio
async def test_create_user_does_not_deduplicate(repo, engine):
    first = await repo.create_user("yuki")
    second = await repo.create_user("yuki")

    assert first != second
    assert [name for _, name in await fetch_users(engine)] == ["yuki", "yuki"]


@pytest.mark.asyncio
async def test_ids_follow_input_order_after_existing_rows(repo, engine):
    await repo.create_user("existing")

    ids = await repo.create_user("a", "b", "c")

    users = dict(await fetch_users(engine))
    assert [users[i] for i in ids] == ["a", "b", "c"]
    assert ids == sorted(ids)


@pytest.mark.asyncio
async def test_create_user_role_expands_every_role(repo, engine):
    (user_id,) = await repo.create_user("multi")

    await repo.create_user_role(UserRoleAssignment(user_id=user_id, role_ids=(1, 2, 3)))

    assert await fetch_user_roles(engine) == [(user_id, 1), (user_id, 2), (user_id, 3)]


@pytest.mark.asyncio
async def test_create_user_role_with_no_assignments_is_noop(repo, engine):
    await repo.create_user_role()

    assert await fetch_user_roles(engine) == []


@pytest.mark.asyncio
async def test_start_tx_leaves_receiver_untouched(repo):
    tx = await repo.start_tx()
    try:
        assert tx is not repo
        assert tx.state is TxState.ACTIVE
        assert repo.state is TxState.IDLE
        assert not repo.in_transaction
    finally:
        await tx.end_tx()


@pytest.mark.asyncio
async def test_commit_makes_rows_visible(repo, engine):
    tx = await repo.start_tx()
    ids = await tx.create_user("a", "b")
    await tx.create_user_role(*(UserRoleAssignment(user_id=i) for i in ids))

    await tx.end_tx(None, None)

    assert tx.state is TxState.COMMITTED
    assert await fetch_users(engine) == [(ids[0], "a"), (ids[1], "b")]
    assert await fetch_user_roles(engine) == [(ids[0], 1), (ids[1], 1)]


@pytest.mark.asyncio
async def test_end_tx_with_error_rolls_back_and_raises_first_error(repo, engine):
    tx = await repo.start_tx()
    await tx.create_user("a", "b")
    first, second = ValueError("first"), ValueError("second")

    with pytest.raises(ValueError) as excinfo:
        await tx.end_tx(None, first, second)

    assert excinfo.value is first
    assert tx.state is TxState.ROLLED_BACK
    assert await fetch_users(engine) == []


@pytest.mark.asyncio
async def test_end_tx_without_transaction_is_noop(repo):
    await repo.end_tx()
    await repo.end_tx(ValueError("ignored"), None)

    assert repo.state is TxState.IDLE


@pytest.mark.asyncio
async def test_constraint_violation_raises_constraint_error(repo, engine):
    (user_id,) = await repo.create_user("a")

    with pytest.raises(ConstraintError):
        await repo.create_user_role(UserRoleAssignment(user_id=user_id, role_ids=(0,)))

    assert await fetch_user_roles(engine) == []


@pytest.mark.asyncio
async def test_failed_role_insert_rolls_back_users_in_same_transaction(repo, engine):
    tx = await repo.start_tx()
    ids = await tx.create_user("a", "b")

    with pytest.raises(ConstraintError) as excinfo:
        await tx.create_user_role(*(UserRoleAssignment(user_id=i, role_ids=(0,)) for i in ids))
    with pytest.raises(ConstraintError):
        await tx.end_tx(excinfo.value)

    assert await fetch_users(engine) == []
    assert await fetch_user_roles(engine) == []


@pytest.mark.asyncio
async def test_ended_handle_rejects_further_use(repo):
    tx = await repo.start_tx()
    await tx.end_tx()

    with pytest.raises(InvalidStateError):
        await tx.end_tx()
    with pytest.raises(InvalidStateError):
        await tx.create_user("late")
    with pytest.raises(InvalidStateError):
        await tx.create_user_role(UserRoleAssignment(user_id=1))


@pytest.mark.asyncio
async def test_transaction_context_rolls_back_on_exception(repo, engine):
    with pytest.raises(RuntimeError):
        async with repo.transaction() as tx:
            await tx.create_user("a")
            raise RuntimeError("boom")

    assert tx.state is TxState.ROLLED_BACK
    assert await fetch_users(engine) == []


@pytest.mark.asyncio
async def test_transaction_context_commits_on_clean_exit(repo, engine):
    async with repo.transaction() as tx:
        ids = await tx.create_user("a")

    assert tx.state is TxState.COMMITTED
    assert await fetch_users(engine) == [(ids[0], "a")]


