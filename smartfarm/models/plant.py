# smartfarm/models/plant.py
"""
Plant type, plant batch and status history models.
"""
import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Numeric, Text, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .base import Base


class PlantStatus(str, enum.Enum):
    """Health status of a plant batch"""
    HEALTHY = "healthy"
    AT_RISK = "at_risk"
    CRITICAL = "critical"
    DISEASED = "diseased"
    HARVESTED = "harvested"


class PlantType(Base):
    __tablename__ = "plant_types"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    scientific_name = Column(String(255), nullable=True)
    irrigation_frequency_days = Column(Integer, nullable=False)  # Days between waterings
    growth_duration_days = Column(Integer, nullable=True)
    optimal_temperature_min = Column(Numeric(5, 2), nullable=True)
    optimal_temperature_max = Column(Numeric(5, 2), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("irrigation_frequency_days > 0", name="ck_plant_types_frequency_positive"),
    )

    # Relationships
    plant_batches = relationship("PlantBatch", back_populates="plant_type")


class PlantBatch(Base):
    __tablename__ = "plant_batches"
    id = Column(Integer, primary_key=True, index=True)
    field_id = Column(Integer, ForeignKey("fields.id", ondelete="CASCADE"), nullable=False, index=True)
    plant_type_id = Column(Integer, ForeignKey("plant_types.id", ondelete="RESTRICT"), nullable=False, index=True)
    batch_name = Column(String(255), nullable=False)
    planting_date = Column(Date, nullable=False)
    quantity = Column(Integer, nullable=True)
    current_status = Column(String(50), nullable=False, default=PlantStatus.HEALTHY.value, index=True)
    last_irrigation_date = Column(Date, nullable=True, index=True)  # NULL means never irrigated
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True, index=True)  # Soft delete

    # Relationships
    field = relationship("Field", back_populates="plant_batches")
    plant_type = relationship("PlantType", back_populates="plant_batches")
    status_history = relationship("StatusHistory", back_populates="plant_batch", cascade="all, delete-orphan")
    irrigation_events = relationship("IrrigationEvent", back_populates="plant_batch", cascade="all, delete-orphan")
    notes = relationship("Note", back_populates="plant_batch", cascade="all, delete-orphan")


class StatusHistory(Base):
    __tablename__ = "status_history"
    id = Column(Integer, primary_key=True, index=True)
    plant_batch_id = Column(Integer, ForeignKey("plant_batches.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(50), nullable=False)
    previous_status = Column(String(50), nullable=True)
    changed_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reason = Column(Text, nullable=True)
    severity = Column(String(20), nullable=True)

    # Relationships
    plant_batch = relationship("PlantBatch", back_populates="status_history")
