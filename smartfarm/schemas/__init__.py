# smartfarm/schemas/__init__.py
"""
Pydantic schemas for request/response validation.
"""
from .user import UserRead, UserCreate
from .plant import (
    PlantTypeRead,
    FieldSummary,
    IrrigationStatusRead,
    PlantBatchRead,
    PlantBatchDetail,
    PlantBatchStatusUpdate,
    StatusHistoryRead,
)
from .irrigation import (
    IrrigationEventCreate,
    IrrigationComplete,
    IrrigationEventRead,
    OverdueBatchRead,
)
from .dashboard import (
    StatusCount,
    FieldCount,
    IrrigationSummary,
    RecentActivity,
    DashboardStats,
    AlertRead,
)
from .chat import ChatMessage, ChatRequest, ChatReply, ChatResponse, ChatSuggestions

__all__ = [
    # User schemas
    "UserRead",
    "UserCreate",
    # Plant schemas
    "PlantTypeRead",
    "FieldSummary",
    "IrrigationStatusRead",
    "PlantBatchRead",
    "PlantBatchDetail",
    "PlantBatchStatusUpdate",
    "StatusHistoryRead",
    # Irrigation schemas
    "IrrigationEventCreate",
    "IrrigationComplete",
    "IrrigationEventRead",
    "OverdueBatchRead",
    # Dashboard schemas
    "StatusCount",
    "FieldCount",
    "IrrigationSummary",
    "RecentActivity",
    "DashboardStats",
    "AlertRead",
    # Chat schemas
    "ChatMessage",
    "ChatRequest",
    "ChatReply",
    "ChatResponse",
    "ChatSuggestions",
]
