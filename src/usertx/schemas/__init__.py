from .base import BaseSchema, FrozenSchema
from .enums import BackendKind, TxState
from .user import (
    DEFAULT_ROLE_ID,
    AdminUserCreateRequest,
    UserCreateRequest,
    UserIdsResponse,
    UserRoleAssignment,
)
