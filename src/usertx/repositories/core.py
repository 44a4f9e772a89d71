"""Lightweight backend: SQLAlchemy Core ``insert()`` fed a list of row dicts."""
from typing import Sequence

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from usertx.models import User, UserRole
from usertx.repositories.base import EngineBackend, UserRoleRow


class CoreBackend(EngineBackend):
    name = "core"

    def __init__(self, engine: AsyncEngine):
        super().__init__(engine)
        self.users = User.__table__
        self.user_roles = UserRole.__table__

    async def insert_users(self, conn: AsyncConnection, names: Sequence[str]) -> list[int]:
        rows = [{"name": name} for name in names]
        if conn.dialect.insert_executemany_returning:
            stmt = insert(self.users).returning(self.users.c.id, sort_by_parameter_order=True)
            result = await conn.execute(stmt, rows)
            return list(result.scalars().all())

        # no executemany RETURNING on this dialect, one statement per row
        ids = []
        for row in rows:
            result = await conn.execute(insert(self.users), row)
            ids.append(result.inserted_primary_key[0])
        return ids

    async def insert_user_roles(self, conn: AsyncConnection, rows: Sequence[UserRoleRow]) -> None:
        await conn.execute(
            insert(self.user_roles),
            [{"user_id": user_id, "role_id": role_id} for user_id, role_id in rows],
        )
