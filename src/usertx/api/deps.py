from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from usertx.services.user_service import UserService


def get_user_service(request: Request) -> UserService:
    """User service created by the application lifespan."""
    return request.app.state.user_service


def get_engine(request: Request) -> AsyncEngine:
    return request.app.state.engine


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
EngineDep = Annotated[AsyncEngine, Depends(get_engine)]
