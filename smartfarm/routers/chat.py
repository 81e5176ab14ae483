# smartfarm/routers/chat.py
"""
Assistant chat endpoints.
"""
from fastapi import APIRouter, Depends

from smartfarm.dependencies import current_user, get_assistant_pipeline
from smartfarm.models import User
from smartfarm.schemas import ChatRequest, ChatResponse, ChatSuggestions
from smartfarm.services.assistant import AssistantPipeline, CHAT_SUGGESTIONS

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", response_model=ChatResponse, response_model_exclude_none=True)
async def chat_with_assistant(
    chat: ChatRequest,
    user: User = Depends(current_user),
    pipeline: AssistantPipeline = Depends(get_assistant_pipeline)
):
    """
    Answer a question about the user's farm data.

    Failures inside the pipeline come back as a normal text reply.
    """
    history = [message.model_dump() for message in chat.conversation_history]
    turn = await pipeline.run(chat.message, user.id, history)
    return turn.to_response()


@router.get("/suggestions", response_model=ChatSuggestions)
async def get_chat_suggestions(user: User = Depends(current_user)):
    """Example questions for the chat UI"""
    return {"suggestions": CHAT_SUGGESTIONS}
