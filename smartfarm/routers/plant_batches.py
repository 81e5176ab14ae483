# smartfarm/routers/plant_batches.py
"""
Plant batch endpoints: plant types, batch listing, batch detail with
irrigation status, and health status changes.
"""
import logging
from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from smartfarm.core.errors import ValidationError
from smartfarm.dependencies import current_user, get_db
from smartfarm.models import User, Field, PlantType, PlantBatch, PlantStatus, StatusHistory
from smartfarm.schemas import (
    PlantTypeRead,
    PlantBatchRead,
    PlantBatchDetail,
    PlantBatchStatusUpdate,
    StatusHistoryRead,
)
from smartfarm.services.farm_data import get_batch_for_user, owned_batch_conditions
from smartfarm.services.irrigation import compute_irrigation_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plant-batches", tags=["plant-batches"])

STATUS_HISTORY_LIMIT = 10


@router.get("/types", response_model=List[PlantTypeRead])
async def list_plant_types(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db)
):
    """All plant types, alphabetically"""
    result = await session.execute(select(PlantType).order_by(PlantType.name))
    return result.scalars().all()


@router.get("", response_model=List[PlantBatchRead])
async def list_plant_batches(
    field_id: Optional[int] = Query(None, description="Filter by field"),
    plant_type_id: Optional[int] = Query(None, description="Filter by plant type"),
    status: Optional[PlantStatus] = Query(None, description="Filter by current status"),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db)
):
    """List the user's live plant batches, newest first"""
    conditions = owned_batch_conditions(user.id)

    if field_id:
        conditions.append(PlantBatch.field_id == field_id)

    if plant_type_id:
        conditions.append(PlantBatch.plant_type_id == plant_type_id)

    if status:
        conditions.append(PlantBatch.current_status == status.value)

    result = await session.execute(
        select(PlantBatch)
        .join(Field, PlantBatch.field_id == Field.id)
        .options(selectinload(PlantBatch.field), selectinload(PlantBatch.plant_type))
        .where(*conditions)
        .order_by(PlantBatch.created_at.desc(), PlantBatch.id.desc())
    )
    return result.scalars().all()


@router.get("/{batch_id}", response_model=PlantBatchDetail)
async def get_plant_batch(
    batch_id: int,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db)
):
    """Get a batch with its computed irrigation status"""
    batch = await get_batch_for_user(session, batch_id, user.id)
    if not batch:
        raise HTTPException(404, "Plant batch not found")

    try:
        irrigation_status = compute_irrigation_status(
            batch.last_irrigation_date,
            batch.plant_type.irrigation_frequency_days,
        )
    except ValidationError as e:
        logger.error("Invalid irrigation data for batch %s: %s", batch.id, e)
        raise HTTPException(422, str(e))

    history_result = await session.execute(
        select(StatusHistory)
        .where(StatusHistory.plant_batch_id == batch.id)
        .order_by(StatusHistory.changed_at.desc(), StatusHistory.id.desc())
        .limit(STATUS_HISTORY_LIMIT)
    )

    detail = PlantBatchRead.model_validate(batch).model_dump()
    detail["irrigation_status"] = irrigation_status.to_dict()
    detail["status_history"] = [StatusHistoryRead.model_validate(h) for h in history_result.scalars().all()]
    return PlantBatchDetail(**detail)


@router.put("/{batch_id}/status", response_model=PlantBatchRead)
async def update_plant_batch_status(
    batch_id: int,
    update: PlantBatchStatusUpdate,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db)
):
    """Change a batch's health status and record the change in its history"""
    batch = await get_batch_for_user(session, batch_id, user.id)
    if not batch:
        raise HTTPException(404, "Plant batch not found")

    previous_status = batch.current_status
    batch.current_status = update.status.value
    batch.updated_at = datetime.utcnow()

    session.add(StatusHistory(
        plant_batch_id=batch.id,
        status=update.status.value,
        previous_status=previous_status,
        changed_by=user.id,
        reason=update.reason,
        severity=update.severity,
    ))
    await session.commit()

    logger.info("Batch %s status %s -> %s by user %s", batch.id, previous_status, batch.current_status, user.id)
    return batch
