# smartfarm/routers/auth.py
"""
Authentication endpoints: cookie and bearer JWT login/logout, current user.
"""
from fastapi import APIRouter, Depends

from smartfarm.auth import fastapi_users, auth_backend, bearer_backend, current_user
from smartfarm.models import User
from smartfarm.schemas import UserRead

router = APIRouter(tags=["auth"])

router.include_router(fastapi_users.get_auth_router(auth_backend), prefix="/auth/jwt")
router.include_router(fastapi_users.get_auth_router(bearer_backend), prefix="/auth/bearer")

api_router = APIRouter(prefix="/api/auth", tags=["auth"])


@api_router.get("/me", response_model=UserRead)
async def get_current_user_info(user: User = Depends(current_user)):
    """Get the logged-in user"""
    return user
