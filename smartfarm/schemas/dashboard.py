# smartfarm/schemas/dashboard.py
"""
Dashboard Pydantic schemas.
"""
from typing import Optional, List
from pydantic import BaseModel


class StatusCount(BaseModel):
    status: str
    count: int


class FieldCount(BaseModel):
    field_id: int
    field_name: str
    count: int


class IrrigationSummary(BaseModel):
    overdue: int
    critical: int
    total_overdue: int


class RecentActivity(BaseModel):
    notes_last_7_days: int


class DashboardStats(BaseModel):
    total_plants: int
    plants_by_status: List[StatusCount]
    plants_by_field: List[FieldCount]
    irrigation: IrrigationSummary
    problem_plants: int
    recent_activity: RecentActivity


class AlertRead(BaseModel):
    type: str  # 'irrigation' or 'status'
    severity: str  # 'critical', 'warning', 'info'
    message: str
    plant_batch_id: int
    batch_name: str
    field_name: str
    days_overdue: Optional[int] = None
    status: Optional[str] = None
