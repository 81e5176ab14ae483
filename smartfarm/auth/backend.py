"""Authentication backends and the current-user dependencies."""
import logging

from fastapi import Depends, HTTPException
from fastapi_users import FastAPIUsers
from fastapi_users.authentication import AuthenticationBackend

from smartfarm.core.security import bearer_transport, cookie_transport, get_jwt_strategy
from smartfarm.models.user import User
from .manager import get_user_manager

logger = logging.getLogger(__name__)

auth_backend = AuthenticationBackend(
    name="jwt",
    transport=cookie_transport,
    get_strategy=get_jwt_strategy,
)

bearer_backend = AuthenticationBackend(
    name="bearer",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

fastapi_users = FastAPIUsers[User, int](
    get_user_manager,
    [auth_backend, bearer_backend],
)

_base_current_user = fastapi_users.current_user(active=False)  # Active check below gives a clearer error


async def current_user(user: User = Depends(_base_current_user)) -> User:
    """Authenticated, active user"""
    if not user.is_active:
        logger.info("Rejected inactive user %s", user.email)
        raise HTTPException(status_code=403, detail="INACTIVE")
    return user
