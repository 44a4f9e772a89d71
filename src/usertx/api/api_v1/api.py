from fastapi import APIRouter

from usertx.api.api_v1.endpoints import users

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
