"""Full ORM backend: mapped ``User``/``UserRole`` objects flushed through an ``AsyncSession``."""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from usertx.models import User, UserRole
from usertx.repositories.base import UserRoleRow


class OrmBackend:
    name = "orm"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def begin(self) -> AsyncSession:
        session = self.session_factory()
        try:
            await session.begin()
            # Acquire the connection now so a failure surfaces at begin time
            await session.connection()
        except BaseException:
            await session.close()
            raise
        return session

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session, session.begin():
            yield session

    async def insert_users(self, session: AsyncSession, names: Sequence[str]) -> list[int]:
        users = [User(name=name) for name in names]
        session.add_all(users)
        await session.flush()
        return [user.id for user in users]

    async def insert_user_roles(self, session: AsyncSession, rows: Sequence[UserRoleRow]) -> None:
        session.add_all([UserRole(user_id=user_id, role_id=role_id) for user_id, role_id in rows])
        await session.flush()

    async def commit(self, session: AsyncSession) -> None:
        try:
            await session.commit()
        finally:
            await session.close()

    async def rollback(self, session: AsyncSession) -> None:
        try:
            await session.rollback()
        finally:
            await session.close()
