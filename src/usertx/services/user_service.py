import logging

from usertx.core.errors import RepositoryError
from usertx.repositories import UserRepository
from usertx.schemas import DEFAULT_ROLE_ID, UserRoleAssignment


class UserService:
    """User creation use cases built on a :class:`UserRepository`."""

    def __init__(self, repo: UserRepository):
        self.repo = repo
        self.logger = logging.getLogger(__name__)

    async def create_user(self, *names: str) -> list[int]:
        """Create users outside of any transaction, without roles.

        Returns:
            list[int]: New user ids in the order of ``names``
        """
        return await self.repo.create_user(*names)

    async def create_admin_user(self, *names: str, role_id: int = DEFAULT_ROLE_ID) -> list[int]:
        """Create users and give each one ``role_id``, all in one transaction.

        The first failing step stops the operation: later steps are skipped,
        the transaction is rolled back and the error is raised.

        Args:
            names: Display names of the users to create
            role_id: Role assigned to every new user

        Returns:
            list[int]: New user ids in the order of ``names``

        Raises:
            RepositoryError: If any step or the commit fails
        """
        try:
            async with self.repo.transaction() as tx:
                user_ids = await tx.create_user(*names)
                assignments = [
                    UserRoleAssignment(user_id=user_id, role_ids=(role_id,))
                    for user_id in user_ids
                ]
                await tx.create_user_role(*assignments)
        except RepositoryError as e:
            self.logger.error(f"Failed to create admin users {list(names)}: {str(e)}")
            raise

        self.logger.info(f"Created admin users {user_ids} with role {role_id}")
        return user_ids
