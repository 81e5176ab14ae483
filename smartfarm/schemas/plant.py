# smartfarm/schemas/plant.py
"""
Plant type and plant batch Pydantic schemas.
"""
from typing import Optional, List
from datetime import date, datetime
from pydantic import BaseModel

from smartfarm.models.plant import PlantStatus


class PlantTypeRead(BaseModel):
    id: int
    name: str
    scientific_name: Optional[str]
    irrigation_frequency_days: int
    growth_duration_days: Optional[int]
    optimal_temperature_min: Optional[float]
    optimal_temperature_max: Optional[float]

    class Config:
        from_attributes = True


class FieldSummary(BaseModel):
    id: int
    name: str
    location: Optional[str]

    class Config:
        from_attributes = True


class IrrigationStatusRead(BaseModel):
    status: str  # 'on_time', 'overdue', 'critical'
    days_overdue: int
    next_due_date: Optional[date]


class PlantBatchRead(BaseModel):
    id: int
    field_id: int
    plant_type_id: int
    batch_name: str
    planting_date: date
    quantity: Optional[int]
    current_status: str  # 'healthy', 'at_risk', 'critical', 'diseased', 'harvested'
    last_irrigation_date: Optional[date]
    created_at: datetime
    updated_at: datetime
    field: Optional[FieldSummary] = None
    plant_type: Optional[PlantTypeRead] = None

    class Config:
        from_attributes = True


class StatusHistoryRead(BaseModel):
    id: int
    status: str
    previous_status: Optional[str]
    changed_at: datetime
    changed_by: Optional[int]
    reason: Optional[str]
    severity: Optional[str]

    class Config:
        from_attributes = True


class PlantBatchDetail(PlantBatchRead):
    """Single batch with its computed irrigation status and recent status changes"""
    irrigation_status: IrrigationStatusRead
    status_history: List[StatusHistoryRead] = []


class PlantBatchStatusUpdate(BaseModel):
    status: PlantStatus
    reason: Optional[str] = None
    severity: Optional[str] = None
