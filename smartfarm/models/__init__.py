# smartfarm/models/__init__.py
"""
SQLAlchemy models for the smart farm server.
"""
from .base import Base
from .user import User
from .field import Field
from .plant import PlantStatus, PlantType, PlantBatch, StatusHistory
from .irrigation import IrrigationEventStatus, IrrigationEvent
from .note import Note

__all__ = [
    "Base",
    "User",
    "Field",
    "PlantStatus",
    "PlantType",
    "PlantBatch",
    "StatusHistory",
    "IrrigationEventStatus",
    "IrrigationEvent",
    "Note",
]
