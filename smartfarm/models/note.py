# smartfarm/models/note.py
"""
Observation notes attached to plant batches.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from datetime import datetime
from .base import Base


class Note(Base):
    __tablename__ = "notes"
    id = Column(Integer, primary_key=True, index=True)
    plant_batch_id = Column(Integer, ForeignKey("plant_batches.id", ondelete="CASCADE"), nullable=False, index=True)
    note_type = Column(String(50), nullable=False, index=True)  # 'irrigation', 'disease', 'fertilizer', 'observation', 'harvest', 'weather', 'general'
    content = Column(Text, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    edited_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True, index=True)  # Soft delete

    # Relationships
    plant_batch = relationship("PlantBatch", back_populates="notes")
