# smartfarm/schemas/chat.py
"""
Assistant chat Pydantic schemas.
"""
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    conversation_history: List[ChatMessage] = []


class ChatReply(BaseModel):
    type: Literal["text", "chart"]
    language: str = "en"
    content: Optional[str] = None  # text replies
    html: Optional[str] = None  # chart replies
    title: Optional[str] = None
    chart: Optional[Dict[str, Any]] = None  # Chart.js config
    sql_query: Optional[str] = None
    raw_data: Optional[List[Dict[str, Any]]] = None


class ChatResponse(BaseModel):
    success: bool = True
    route: int  # 0 off-topic, 1 text, 2 chart
    response: ChatReply


class ChatSuggestions(BaseModel):
    suggestions: List[str]
