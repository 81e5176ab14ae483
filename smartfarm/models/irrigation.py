# smartfarm/models/irrigation.py
"""
Irrigation event model (planned and completed waterings).
"""
import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Numeric, Text
from sqlalchemy.orm import relationship
from datetime import datetime
from .base import Base


class IrrigationEventStatus(str, enum.Enum):
    PLANNED = "planned"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class IrrigationEvent(Base):
    __tablename__ = "irrigation_events"
    id = Column(Integer, primary_key=True, index=True)
    plant_batch_id = Column(Integer, ForeignKey("plant_batches.id", ondelete="CASCADE"), nullable=False, index=True)
    scheduled_date = Column(Date, nullable=False, index=True)
    executed_date = Column(Date, nullable=True)  # Set once the watering actually happened
    status = Column(String(20), nullable=False, default=IrrigationEventStatus.PLANNED.value, index=True)
    water_amount_liters = Column(Numeric(10, 2), nullable=True)
    method = Column(String(50), nullable=True)  # e.g. 'drip', 'sprinkler', 'manual'
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    plant_batch = relationship("PlantBatch", back_populates="irrigation_events")
