"""Repository error kinds and translation from SQLAlchemy exceptions."""
import asyncio

from sqlalchemy import exc as sa_exc


class RepositoryError(Exception):
    """Base class for every error raised by the user repository."""


class DatabaseConnectionError(RepositoryError):
    """The store could not begin, commit or roll back, or the transport failed."""


class CommitError(DatabaseConnectionError):
    """Every step succeeded but the commit itself failed."""


class OperationTimeoutError(DatabaseConnectionError):
    """An operation did not finish before its deadline."""


class ConstraintError(RepositoryError):
    """The store rejected a row."""


class InvalidStateError(RepositoryError):
    """Operation invoked on a handle that has already been ended."""


class UnsupportedOperationError(RepositoryError):
    """The backend cannot perform the operation without an unsafe assumption."""


def translate_error(exc: BaseException) -> RepositoryError:
    """Map a storage exception onto a repository error kind.

    Repository errors pass through unchanged.
    """
    if isinstance(exc, RepositoryError):
        return exc
    if isinstance(exc, asyncio.TimeoutError):
        return OperationTimeoutError(str(exc) or "operation timed out")
    if isinstance(exc, (sa_exc.IntegrityError, sa_exc.DataError)):
        return ConstraintError(str(exc.orig) if exc.orig is not None else str(exc))
    if isinstance(exc, sa_exc.TimeoutError):
        return OperationTimeoutError(str(exc))
    if isinstance(exc, (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.DisconnectionError)):
        return DatabaseConnectionError(str(exc))
    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return DatabaseConnectionError(str(exc))
    if isinstance(exc, (ConnectionError, OSError)):
        return DatabaseConnectionError(str(exc))
    return RepositoryError(str(exc))
