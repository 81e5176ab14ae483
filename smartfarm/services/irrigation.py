# smartfarm/services/irrigation.py
"""
Irrigation status engine.

Pure computation over plant batch snapshots: derives the next due date, the
number of whole days a batch is overdue and a severity tier, then aggregates
those per-batch results into the overdue list and the dashboard counters.

Tiering:
    0 days overdue      -> on_time
    1 to 2 days overdue -> overdue
    more than 2 days    -> critical
    never irrigated     -> critical (no due date, 0 days overdue)
"""
import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

from dateutil import parser as date_parser

from smartfarm.core.errors import ValidationError

DateInput = Union[date, datetime, str, None]

OVERDUE_MAX_DAYS = 2  # Anything later than this is critical


class IrrigationTier(str, enum.Enum):
    """Irrigation severity tier for one batch"""
    ON_TIME = "on_time"
    OVERDUE = "overdue"
    CRITICAL = "critical"


@dataclass(frozen=True)
class IrrigationStatus:
    status: IrrigationTier
    days_overdue: int
    next_due_date: Optional[date]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "days_overdue": self.days_overdue,
            "next_due_date": self.next_due_date.isoformat() if self.next_due_date else None,
        }


@dataclass(frozen=True)
class BatchSnapshot:
    """The columns of a plant batch the engine needs, joined with its field and plant type."""
    id: int
    batch_name: str
    field_name: str
    current_status: str
    last_irrigation_date: Optional[date]
    irrigation_frequency_days: int


@dataclass(frozen=True)
class OverdueBatch:
    """A batch that needs watering, with its tier attached as severity."""
    batch: BatchSnapshot
    severity: IrrigationTier
    days_overdue: int
    next_due_date: Optional[date]

    @property
    def never_irrigated(self) -> bool:
        return self.batch.last_irrigation_date is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_id": self.batch.id,
            "batch_name": self.batch.batch_name,
            "field_name": self.batch.field_name,
            "current_status": self.batch.current_status,
            "last_irrigation_date": self.batch.last_irrigation_date.isoformat() if self.batch.last_irrigation_date else None,
            "next_due_date": self.next_due_date.isoformat() if self.next_due_date else None,
            "severity": self.severity.value,
            "days_overdue": self.days_overdue,
            "never_irrigated": self.never_irrigated,
        }


@dataclass(frozen=True)
class IrrigationCounts:
    overdue: int
    critical: int

    @property
    def total_overdue(self) -> int:
        return self.overdue + self.critical

    def to_dict(self) -> Dict[str, int]:
        return {
            "overdue": self.overdue,
            "critical": self.critical,
            "total_overdue": self.total_overdue,
        }


def to_calendar_date(value: DateInput, field_name: str = "date") -> Optional[date]:
    """
    Normalise a date-like value to a calendar date (time of day dropped).

    Accepts date, datetime or an ISO 8601 string; None passes through.
    Raises ValidationError for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date_parser.isoparse(value.strip()).date()
        except (ValueError, OverflowError) as e:
            raise ValidationError(f"Invalid {field_name}: {value!r}") from e
    raise ValidationError(f"Invalid {field_name}: expected a date, got {type(value).__name__}")


def validate_frequency(irrigation_frequency_days: Any) -> int:
    """Frequency must be a positive whole number of days."""
    if isinstance(irrigation_frequency_days, bool) or not isinstance(irrigation_frequency_days, int):
        raise ValidationError(
            f"irrigation_frequency_days must be a positive integer, got {irrigation_frequency_days!r}"
        )
    if irrigation_frequency_days <= 0:
        raise ValidationError(
            f"irrigation_frequency_days must be a positive integer, got {irrigation_frequency_days}"
        )
    return irrigation_frequency_days


def tier_for(days_overdue: int) -> IrrigationTier:
    if days_overdue > OVERDUE_MAX_DAYS:
        return IrrigationTier.CRITICAL
    if days_overdue > 0:
        return IrrigationTier.OVERDUE
    return IrrigationTier.ON_TIME


def compute_irrigation_status(
    last_irrigation_date: DateInput,
    irrigation_frequency_days: int,
    as_of: DateInput = None,
) -> IrrigationStatus:
    """
    Compute the irrigation status of a single batch.

    Args:
        last_irrigation_date: Last watering date, or None if never watered
        irrigation_frequency_days: The plant type's watering interval
        as_of: Reference day, defaults to today (local calendar day)

    Returns:
        IrrigationStatus with tier, whole days overdue (never negative) and next due date

    Raises:
        ValidationError: on a non-positive frequency or an unparseable date
    """
    validate_frequency(irrigation_frequency_days)
    last = to_calendar_date(last_irrigation_date, "last_irrigation_date")
    today = to_calendar_date(as_of, "as_of") or date.today()

    if last is None:
        return IrrigationStatus(status=IrrigationTier.CRITICAL, days_overdue=0, next_due_date=None)

    next_due_date = last + timedelta(days=irrigation_frequency_days)
    days_overdue = max(0, (today - next_due_date).days)

    return IrrigationStatus(
        status=tier_for(days_overdue),
        days_overdue=days_overdue,
        next_due_date=next_due_date,
    )


def _urgency_key(item: OverdueBatch):
    # Never irrigated first, then most days overdue
    return (0 if item.never_irrigated else 1, -item.days_overdue)


def list_overdue_batches(batches: Iterable[BatchSnapshot], as_of: DateInput = None) -> List[OverdueBatch]:
    """
    Return the batches that need watering, most urgent first.

    A batch is included when it was never irrigated or is at least one day
    past its due date. Ties keep the order the batches were supplied in.
    """
    today = to_calendar_date(as_of, "as_of") or date.today()
    overdue = []

    for batch in batches:
        status = compute_irrigation_status(
            batch.last_irrigation_date,
            batch.irrigation_frequency_days,
            today,
        )
        if batch.last_irrigation_date is not None and status.days_overdue == 0:
            continue
        overdue.append(OverdueBatch(
            batch=batch,
            severity=status.status,
            days_overdue=status.days_overdue,
            next_due_date=status.next_due_date,
        ))

    return sorted(overdue, key=_urgency_key)


def aggregate_dashboard_counts(batches: Iterable[BatchSnapshot], as_of: DateInput = None) -> IrrigationCounts:
    """Count overdue and critical batches using the same tiering as list_overdue_batches."""
    overdue_batches = list_overdue_batches(batches, as_of)
    overdue = sum(1 for item in overdue_batches if item.severity == IrrigationTier.OVERDUE)
    critical = sum(1 for item in overdue_batches if item.severity == IrrigationTier.CRITICAL)
    return IrrigationCounts(overdue=overdue, critical=critical)
