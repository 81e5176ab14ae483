"""User database adapter and session dependency."""
from fastapi import Depends
from fastapi_users.db import SQLAlchemyUserDatabase
from sqlalchemy.ext.asyncio import AsyncSession

from smartfarm.models.user import User
from smartfarm.core.database import async_session_maker


async def get_db():
    """Get database session dependency."""
    async with async_session_maker() as session:
        yield session


async def get_user_db(session: AsyncSession = Depends(get_db)):
    """Get user database dependency."""
    yield SQLAlchemyUserDatabase(session, User)
