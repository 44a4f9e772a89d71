"""Raw driver backend: hand-built multi-row INSERT statements run on the DBAPI cursor."""
import logging
from typing import Any, Callable, Sequence, Union

from sqlalchemy.engine import CursorResult, Dialect
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from usertx.core.errors import RepositoryError, UnsupportedOperationError
from usertx.repositories.base import EngineBackend, UserRoleRow

logger = logging.getLogger(__name__)

Params = Union[tuple[Any, ...], dict[str, Any]]

# placeholder for the n-th (1-based) parameter in each DBAPI paramstyle
PLACEHOLDERS: dict[str, Callable[[int], str]] = {
    "qmark": lambda n: "?",
    "format": lambda n: "%s",
    "numeric": lambda n: f":{n}",
    "numeric_dollar": lambda n: f"${n}",
    "named": lambda n: f":p{n}",
    "pyformat": lambda n: f"%(p{n})s",
}

# drivers whose lastrowid is the first id of a multi-row insert
FIRST_ID_DIALECTS = ("mysql", "mariadb")


def build_insert(
    table: str,
    columns: Sequence[str],
    rows: Sequence[Sequence[Any]],
    *,
    paramstyle: str = "qmark",
    returning: str | None = None,
) -> tuple[str, Params]:
    """Build one ``INSERT ... VALUES (...), (...);`` statement for ``rows``.

    Parameters are bound positionally in row order; named paramstyles get
    ``p1``, ``p2``, ... keys in the same order.
    """
    if not rows:
        raise ValueError("cannot build an INSERT without rows")
    try:
        render = PLACEHOLDERS[paramstyle]
    except KeyError:
        raise UnsupportedOperationError(f"Unsupported DBAPI paramstyle: {paramstyle}") from None

    params: list[Any] = []
    groups = []
    for row in rows:
        if len(row) != len(columns):
            raise ValueError(f"expected {len(columns)} values per row, got {len(row)}")
        marks = []
        for value in row:
            params.append(value)
            marks.append(render(len(params)))
        groups.append("(" + ", ".join(marks) + ")")

    statement = f"INSERT INTO {table} ({', '.join(columns)}) VALUES {', '.join(groups)}"
    if returning:
        statement += f" RETURNING {returning}"
    statement += ";"

    if paramstyle in ("named", "pyformat"):
        return statement, {f"p{n}": value for n, value in enumerate(params, start=1)}
    return statement, tuple(params)


def chunk_rows(rows: Sequence[Sequence[Any]], width: int, max_params: int) -> list[Sequence[Sequence[Any]]]:
    """Split ``rows`` so that no chunk binds more than ``max_params`` parameters."""
    per_chunk = max(1, max_params // width)
    return [rows[start:start + per_chunk] for start in range(0, len(rows), per_chunk)]


class DriverBackend(EngineBackend):
    """Runs hand-built SQL through ``exec_driver_sql``.

    Rows are sent as one multi-row INSERT per chunk; a chunk binds at most
    ``max_params`` parameters, by default the dialect's
    ``insertmanyvalues_max_parameters``. Every chunk runs on the same
    connection, so a batch split over several statements stays in one
    transaction.

    New ids come from ``RETURNING`` when the dialect has it. Otherwise they
    can only be derived from ``lastrowid`` and ``rowcount``, which is correct
    only if the batch received a contiguous, gapless block of ids; that
    fallback must be switched on with ``assume_contiguous_ids``.
    """

    name = "driver"

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        assume_contiguous_ids: bool = False,
        use_returning: bool = True,
        max_params: int | None = None,
    ):
        super().__init__(engine)
        self.assume_contiguous_ids = assume_contiguous_ids
        self.use_returning = use_returning
        self.max_params = max_params

    async def _exec(self, conn: AsyncConnection, statement: str, params: Params) -> CursorResult:
        logger.debug("exec: %s args=%s", statement, params)
        return await conn.exec_driver_sql(statement, params)

    def _chunks(self, dialect: Dialect, rows: Sequence[Sequence[Any]], width: int) -> list[Sequence[Sequence[Any]]]:
        max_params = self.max_params or dialect.insertmanyvalues_max_parameters
        return chunk_rows(rows, width, max_params)

    async def insert_users(self, conn: AsyncConnection, names: Sequence[str]) -> list[int]:
        dialect = conn.dialect
        returning = self.use_returning and dialect.insert_returning
        ids: list[int] = []
        for chunk in self._chunks(dialect, [(name,) for name in names], 1):
            statement, params = build_insert(
                "users",
                ("name",),
                chunk,
                paramstyle=dialect.paramstyle,
                returning="id" if returning else None,
            )
            result = await self._exec(conn, statement, params)
            if returning:
                # ids from one statement ascend in row order
                ids.extend(sorted(result.scalars().all()))
            else:
                ids.extend(self._recover_ids(dialect, result, len(chunk)))
        return ids

    async def insert_user_roles(self, conn: AsyncConnection, rows: Sequence[UserRoleRow]) -> None:
        dialect = conn.dialect
        for chunk in self._chunks(dialect, rows, 2):
            statement, params = build_insert(
                "user_roles",
                ("user_id", "role_id"),
                chunk,
                paramstyle=dialect.paramstyle,
            )
            await self._exec(conn, statement, params)

    def _recover_ids(self, dialect: Dialect, result: CursorResult, expected: int) -> list[int]:
        if not self.assume_contiguous_ids:
            raise UnsupportedOperationError(
                f"{dialect.name} cannot return inserted ids; "
                "enable assume_contiguous_ids to derive them from lastrowid"
            )
        total = result.rowcount
        last_id = result.lastrowid
        if last_id is None or total != expected:
            raise RepositoryError(
                f"Cannot recover ids: lastrowid={last_id} rowcount={total} expected={expected}"
            )
        first_id = last_id if dialect.name in FIRST_ID_DIALECTS else last_id - total + 1
        return list(range(first_id, first_id + total))
