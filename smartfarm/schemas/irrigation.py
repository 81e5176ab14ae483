# smartfarm/schemas/irrigation.py
"""
Irrigation event and overdue-batch Pydantic schemas.
"""
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field


class IrrigationEventCreate(BaseModel):
    plant_batch_id: int
    scheduled_date: date
    executed_date: Optional[date] = None  # Set for a watering that already happened
    water_amount_liters: Optional[float] = Field(None, ge=0)
    method: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None  # 'completed' records the watering today if executed_date is missing


class IrrigationComplete(BaseModel):
    executed_date: Optional[date] = None  # Defaults to today
    water_amount_liters: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class IrrigationEventRead(BaseModel):
    id: int
    plant_batch_id: int
    scheduled_date: date
    executed_date: Optional[date]
    status: str  # 'planned', 'completed', 'skipped'
    water_amount_liters: Optional[float]
    method: Optional[str]
    notes: Optional[str]
    created_by: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class OverdueBatchRead(BaseModel):
    batch_id: int
    batch_name: str
    field_name: str
    current_status: str
    last_irrigation_date: Optional[date]
    next_due_date: Optional[date]
    severity: str  # 'overdue' or 'critical'
    days_overdue: int
    never_irrigated: bool
