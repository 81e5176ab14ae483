"""User manager: password login for farmer accounts."""
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi_users import BaseUserManager, IntegerIDMixin
from fastapi_users.db import SQLAlchemyUserDatabase

from smartfarm.core.config import SECRET
from smartfarm.models.user import User
from .database import get_user_db

logger = logging.getLogger(__name__)


class UserManager(IntegerIDMixin, BaseUserManager[User, int]):
    reset_password_token_secret = SECRET
    verification_token_secret = SECRET

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        logger.info("User %s (id=%s) has registered", user.email, user.id)

    async def on_after_login(self, user: User, request: Optional[Request] = None, response=None):
        logger.info("User %s (id=%s) logged in", user.email, user.id)


async def get_user_manager(user_db: SQLAlchemyUserDatabase = Depends(get_user_db)):
    yield UserManager(user_db)
