"""Authentication module."""
from .database import get_db, get_user_db
from .manager import UserManager, get_user_manager
from .backend import fastapi_users, auth_backend, bearer_backend, current_user

__all__ = [
    "get_db",
    "get_user_db",
    "UserManager",
    "get_user_manager",
    "fastapi_users",
    "auth_backend",
    "bearer_backend",
    "current_user",
]
