"""User repository and the storage capabilities it is built on.

A :class:`UserRepository` either runs each operation directly against its
backend (one auto-committed connection per call) or, once returned from
:meth:`UserRepository.start_tx`, runs every operation inside the single
transaction the handle owns until :meth:`UserRepository.end_tx`.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from usertx.core.errors import (
    CommitError,
    DatabaseConnectionError,
    InvalidStateError,
    RepositoryError,
    translate_error,
)
from usertx.schemas import TxState, UserRoleAssignment

logger = logging.getLogger(__name__)

T = TypeVar("T")

UserRoleRow = tuple[int, int]


class StorageBackend(Protocol):
    """Capabilities a storage mechanism offers the repository.

    ``executor`` is whatever the backend runs statements on, e.g. an
    ``AsyncSession`` or an ``AsyncConnection``.
    """

    name: str

    async def begin(self) -> Any:
        """Open a transaction and return its executor."""

    def connect(self) -> AbstractAsyncContextManager[Any]:
        """Yield an executor whose work is committed on clean exit."""

    async def insert_users(self, executor: Any, names: Sequence[str]) -> list[int]:
        """Insert one row per name, returning the new ids in input order."""

    async def insert_user_roles(self, executor: Any, rows: Sequence[UserRoleRow]) -> None:
        """Insert ``(user_id, role_id)`` rows."""

    async def commit(self, executor: Any) -> None:
        """Commit the transaction and release ``executor``."""

    async def rollback(self, executor: Any) -> None:
        """Roll back the transaction and release ``executor``."""


class EngineBackend:
    """Connection lifecycle shared by backends that run on an ``AsyncConnection``."""

    name = "engine"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def begin(self) -> AsyncConnection:
        conn = await self.engine.connect()
        try:
            await conn.begin()
        except BaseException:
            await conn.close()
            raise
        return conn

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncConnection]:
        async with self.engine.begin() as conn:
            yield conn

    async def commit(self, conn: AsyncConnection) -> None:
        try:
            await conn.commit()
        finally:
            await conn.close()

    async def rollback(self, conn: AsyncConnection) -> None:
        try:
            await conn.rollback()
        finally:
            await conn.close()


class UserRepository:
    """Creates users and role links through a pluggable storage backend.

    **Parameters**
    * `backend`: the storage mechanism statements run on
    * `statement_timeout`: optional deadline in seconds applied to each operation
    """

    def __init__(self, backend: StorageBackend, *, statement_timeout: Optional[float] = None):
        self.backend = backend
        self.statement_timeout = statement_timeout
        self._executor: Any = None
        self._state = TxState.IDLE

    def __repr__(self) -> str:
        return f"<UserRepository backend={self.backend.name} state={self._state.value}>"

    @property
    def state(self) -> TxState:
        return self._state

    @property
    def in_transaction(self) -> bool:
        return self._state is TxState.ACTIVE

    async def _within_deadline(self, awaitable: Awaitable[T]) -> T:
        if self.statement_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, self.statement_timeout)

    async def _guard(self, awaitable: Awaitable[T]) -> T:
        """Await a backend call under the deadline, translating storage errors."""
        try:
            return await self._within_deadline(awaitable)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            raise translate_error(exc) from exc

    async def _execute(self, operation: Callable[[Any, Any], Awaitable[T]], payload: Any) -> T:
        if self._executor is not None:
            return await self._guard(operation(self._executor, payload))

        async def run() -> T:
            async with self.backend.connect() as executor:
                return await operation(executor, payload)

        return await self._guard(run())

    def _ensure_usable(self, operation: str) -> None:
        if self._state in (TxState.COMMITTED, TxState.ROLLED_BACK):
            raise InvalidStateError(f"Cannot {operation}: transaction already {self._state.value}")

    async def start_tx(self) -> UserRepository:
        """Return a new handle bound to a fresh transaction.

        The receiver is left untouched and stays usable.

        Raises:
            DatabaseConnectionError: If the store cannot begin a transaction
        """
        try:
            executor = await self._guard(self.backend.begin())
        except DatabaseConnectionError:
            raise
        except RepositoryError as exc:
            raise DatabaseConnectionError(f"Could not begin transaction: {exc}") from exc
        tx = UserRepository(self.backend, statement_timeout=self.statement_timeout)
        tx._executor = executor
        tx._state = TxState.ACTIVE
        logger.debug("Started %s transaction", self.backend.name)
        return tx

    async def create_user(self, *names: str) -> list[int]:
        """Bulk insert users and return their ids in the order of ``names``.

        Raises:
            ConstraintError: If the store rejects a row
            DatabaseConnectionError: If the transport fails
            InvalidStateError: If this handle's transaction has already ended
        """
        self._ensure_usable("create users")
        if not names:
            return []
        ids = await self._execute(self.backend.insert_users, list(names))
        if len(ids) != len(names):
            raise RepositoryError(
                f"{self.backend.name} backend returned {len(ids)} ids for {len(names)} users"
            )
        return ids

    async def create_user_role(self, *assignments: UserRoleAssignment) -> None:
        """Bulk insert one ``user_roles`` row per (user, role) pair.

        Raises:
            ConstraintError: If the store rejects a row
            DatabaseConnectionError: If the transport fails
            InvalidStateError: If this handle's transaction has already ended
        """
        self._ensure_usable("create user roles")
        rows = [row for assignment in assignments for row in assignment.rows()]
        if not rows:
            return
        await self._execute(self.backend.insert_user_roles, rows)

    async def end_tx(self, *errors: Optional[BaseException]) -> None:
        """Finish the transaction this handle owns.

        Rolls back and raises the first non-``None`` error in ``errors``;
        commits when there is none. A no-op on a handle without a transaction.

        Raises:
            CommitError: If every step succeeded but the commit failed or
                missed the deadline
            InvalidStateError: If the transaction was already ended
        """
        if self._state is TxState.IDLE:
            return
        if self._state is not TxState.ACTIVE:
            raise InvalidStateError(f"Cannot end transaction: already {self._state.value}")

        executor, self._executor = self._executor, None
        first_error = next((error for error in errors if error is not None), None)

        if first_error is not None:
            self._state = TxState.ROLLED_BACK
            logger.warning("Rolling back %s transaction: %r", self.backend.name, first_error)
            try:
                await self._within_deadline(self.backend.rollback(executor))
            except Exception:
                logger.exception("Rollback of %s transaction failed", self.backend.name)
            raise first_error

        # the executor is gone from here on; a commit that does not finish
        # leaves the handle rolled back, never active
        self._state = TxState.ROLLED_BACK
        try:
            await self._within_deadline(self.backend.commit(executor))
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            raise CommitError(f"Commit failed: {translate_error(exc)}") from exc
        self._state = TxState.COMMITTED
        logger.debug("Committed %s transaction", self.backend.name)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[UserRepository]:
        """Yield a transaction-bound handle that is ended on every exit path.

        Commits on a clean exit. Any exception, cancellation included, rolls
        the transaction back and propagates.
        """
        tx = await self.start_tx()
        try:
            yield tx
        except BaseException as exc:
            if tx.in_transaction:
                await tx.end_tx(exc)
            raise
        if tx.in_transaction:
            await tx.end_tx()
