# smartfarm/routers/dashboard.py
"""
Dashboard endpoints: summary statistics and the alert feed.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from smartfarm.core.config import DASHBOARD_ALERT_LIMIT
from smartfarm.core.errors import ValidationError
from smartfarm.dependencies import current_user, get_db
from smartfarm.models import User
from smartfarm.schemas import DashboardStats, AlertRead
from smartfarm.services.alerts import build_alerts
from smartfarm.services.farm_data import (
    count_batches,
    count_batches_by_field,
    count_batches_by_status,
    count_problem_batches,
    count_recent_notes,
    find_batches_for_user,
)
from smartfarm.services.irrigation import aggregate_dashboard_counts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db)
):
    """Plant counts, irrigation counters, problem plants and recent activity"""
    batches = await find_batches_for_user(session, user.id)
    try:
        irrigation = aggregate_dashboard_counts(batches)
    except ValidationError as e:
        logger.error("Invalid irrigation data for user %s: %s", user.id, e)
        raise HTTPException(422, str(e))

    return {
        "total_plants": await count_batches(session, user.id),
        "plants_by_status": await count_batches_by_status(session, user.id),
        "plants_by_field": await count_batches_by_field(session, user.id),
        "irrigation": irrigation.to_dict(),
        "problem_plants": await count_problem_batches(session, user.id),
        "recent_activity": {
            "notes_last_7_days": await count_recent_notes(session, user.id, days=7),
        },
    }


@router.get("/alerts", response_model=List[AlertRead])
async def get_recent_alerts(
    limit: int = Query(DASHBOARD_ALERT_LIMIT, ge=1, le=200, description="Maximum number of alerts to return"),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db)
):
    """Irrigation and plant health alerts, critical first"""
    batches = await find_batches_for_user(session, user.id)
    try:
        alerts = build_alerts(batches, limit=limit)
    except ValidationError as e:
        logger.error("Invalid irrigation data for user %s: %s", user.id, e)
        raise HTTPException(422, str(e))
    return [alert.to_dict() for alert in alerts]
