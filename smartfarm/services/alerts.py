# smartfarm/services/alerts.py
"""
Dashboard alert feed.

Combines irrigation alerts (from the irrigation engine) with plant health
status alerts and ranks them by severity. Alerts are derived on every request
and never stored.
"""
import enum
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from smartfarm.models.plant import PlantStatus
from smartfarm.services.irrigation import BatchSnapshot, IrrigationTier, DateInput, list_overdue_batches


class AlertSeverity(str, enum.Enum):
    """Alert severity levels"""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class AlertType(str, enum.Enum):
    IRRIGATION = "irrigation"
    STATUS = "status"


SEVERITY_RANK = {
    AlertSeverity.CRITICAL: 0,
    AlertSeverity.WARNING: 1,
    AlertSeverity.INFO: 2,
}

DEFAULT_PROBLEM_STATUSES = frozenset({
    PlantStatus.AT_RISK.value,
    PlantStatus.CRITICAL.value,
    PlantStatus.DISEASED.value,
})

# The irrigation tier "overdue" is reported as alert severity "warning"
IRRIGATION_SEVERITY = {
    IrrigationTier.OVERDUE: AlertSeverity.WARNING,
    IrrigationTier.CRITICAL: AlertSeverity.CRITICAL,
}

STATUS_SEVERITY = {
    PlantStatus.CRITICAL.value: AlertSeverity.CRITICAL,
    PlantStatus.DISEASED.value: AlertSeverity.CRITICAL,
    PlantStatus.AT_RISK.value: AlertSeverity.WARNING,
}


@dataclass(frozen=True)
class Alert:
    type: AlertType
    severity: AlertSeverity
    message: str
    plant_batch_id: int
    batch_name: str
    field_name: str
    days_overdue: Optional[int] = None
    status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "plant_batch_id": self.plant_batch_id,
            "batch_name": self.batch_name,
            "field_name": self.field_name,
        }
        if self.days_overdue is not None:
            data["days_overdue"] = self.days_overdue
        if self.status is not None:
            data["status"] = self.status
        return data


def _status_severity(status: str) -> AlertSeverity:
    # Statuses outside the known problem set still get a warning if a caller asks for them
    return STATUS_SEVERITY.get(status, AlertSeverity.WARNING)


def build_alerts(
    batches: Iterable[BatchSnapshot],
    problem_statuses: Iterable[str] = DEFAULT_PROBLEM_STATUSES,
    as_of: DateInput = None,
    limit: Optional[int] = None,
) -> List[Alert]:
    """
    Build the severity-ranked alert list for a user's batches.

    Irrigation alerts are generated first (in overdue order), then status
    alerts in batch order. The final sort is stable, so alerts of equal
    severity keep that generation order.

    Args:
        batches: The user's batch snapshots
        problem_statuses: Plant statuses that raise a status alert
        as_of: Reference day for the irrigation computation
        limit: Keep only the top N alerts after ranking

    Returns:
        Alerts, critical first
    """
    batches = list(batches)
    problem_statuses = {getattr(s, "value", s) for s in problem_statuses}
    alerts: List[Alert] = []

    for item in list_overdue_batches(batches, as_of):
        batch = item.batch
        if item.never_irrigated:
            alerts.append(Alert(
                type=AlertType.IRRIGATION,
                severity=IRRIGATION_SEVERITY[item.severity],
                message=f"{batch.batch_name} in {batch.field_name} has never been irrigated",
                plant_batch_id=batch.id,
                batch_name=batch.batch_name,
                field_name=batch.field_name,
            ))
        else:
            alerts.append(Alert(
                type=AlertType.IRRIGATION,
                severity=IRRIGATION_SEVERITY[item.severity],
                message=f"{batch.batch_name} in {batch.field_name} is {item.days_overdue} days overdue for irrigation",
                plant_batch_id=batch.id,
                batch_name=batch.batch_name,
                field_name=batch.field_name,
                days_overdue=item.days_overdue,
            ))

    for batch in batches:
        if batch.current_status not in problem_statuses:
            continue
        alerts.append(Alert(
            type=AlertType.STATUS,
            severity=_status_severity(batch.current_status),
            message=f"{batch.batch_name} in {batch.field_name} has status: {batch.current_status}",
            plant_batch_id=batch.id,
            batch_name=batch.batch_name,
            field_name=batch.field_name,
            status=batch.current_status,
        ))

    alerts.sort(key=lambda alert: SEVERITY_RANK[alert.severity])

    if limit is not None:
        return alerts[:limit]
    return alerts
