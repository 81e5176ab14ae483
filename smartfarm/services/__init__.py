# smartfarm/services/__init__.py
"""
Business logic services.
"""
from .irrigation import compute_irrigation_status, list_overdue_batches, aggregate_dashboard_counts
from .alerts import build_alerts
from .sql_guard import ensure_read_only, is_read_only
from .assistant import AssistantModel, AssistantPipeline, AssistantTurn

__all__ = [
    "compute_irrigation_status",
    "list_overdue_batches",
    "aggregate_dashboard_counts",
    "build_alerts",
    "ensure_read_only",
    "is_read_only",
    "AssistantModel",
    "AssistantPipeline",
    "AssistantTurn",
]
