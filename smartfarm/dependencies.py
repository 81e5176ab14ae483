# smartfarm/dependencies.py
"""
Common dependency functions for FastAPI routes.
"""
from functools import partial

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from smartfarm.auth import current_user, get_db
from smartfarm.models import User
from smartfarm.services.assistant import AssistantModel, AssistantPipeline
from smartfarm.services.farm_data import execute_read_only_sql
from smartfarm.services.llm import get_assistant_model


async def get_assistant_pipeline(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db),
    model: AssistantModel = Depends(get_assistant_model),
) -> AssistantPipeline:
    """
    Assistant pipeline wired to the request's session.

    The current user's id is bound as :user_id for statements that use it.
    """
    execute_sql = partial(execute_read_only_sql, session, params={"user_id": user.id})
    return AssistantPipeline(model, execute_sql)


__all__ = ["current_user", "get_db", "get_assistant_pipeline"]
