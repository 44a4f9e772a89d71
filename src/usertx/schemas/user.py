from pydantic import Field

from .base import BaseSchema, FrozenSchema

DEFAULT_ROLE_ID = 1


class UserRoleAssignment(FrozenSchema):
    """Unsaved intent to link one user to one or more roles."""
    user_id: int
    role_ids: tuple[int, ...] = (DEFAULT_ROLE_ID,)

    def rows(self) -> list[tuple[int, int]]:
        """Expand into ``(user_id, role_id)`` pairs, one per role."""
        return [(self.user_id, role_id) for role_id in self.role_ids]


# request
# in
class UserCreateRequest(BaseSchema):
    """Schema for creating users without a transaction."""
    names: list[str] = Field(default_factory=list)


class AdminUserCreateRequest(UserCreateRequest):
    """Schema for creating users with a role in one transaction."""
    role_id: int = DEFAULT_ROLE_ID


# out
class UserIdsResponse(BaseSchema):
    """Identities assigned to newly created users, in request order."""
    ids: list[int]
