from fastapi import APIRouter, status

from usertx.api.deps import UserServiceDep
from usertx.schemas import AdminUserCreateRequest, UserCreateRequest, UserIdsResponse

router = APIRouter()


@router.post("", response_model=UserIdsResponse, status_code=status.HTTP_201_CREATED)
async def create_users(
    user_in: UserCreateRequest,
    service: UserServiceDep,
) -> UserIdsResponse:
    """Create users without a transaction or roles."""
    ids = await service.create_user(*user_in.names)
    return UserIdsResponse(ids=ids)


@router.post("/admin", response_model=UserIdsResponse, status_code=status.HTTP_201_CREATED)
async def create_admin_users(
    user_in: AdminUserCreateRequest,
    service: UserServiceDep,
) -> UserIdsResponse:
    """Create users and assign them a role atomically."""
    ids = await service.create_admin_user(*user_in.names, role_id=user_in.role_id)
    return UserIdsResponse(ids=ids)
