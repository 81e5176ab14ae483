# smartfarm/routers/irrigation.py
"""
Irrigation endpoints: event history, overdue batches, and recording waterings.
"""
import logging
from typing import List
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from smartfarm.core.errors import ValidationError
from smartfarm.dependencies import current_user, get_db
from smartfarm.models import User, Field, PlantBatch, IrrigationEvent, IrrigationEventStatus
from smartfarm.schemas import (
    IrrigationEventCreate,
    IrrigationComplete,
    IrrigationEventRead,
    OverdueBatchRead,
)
from smartfarm.services.farm_data import (
    apply_irrigation,
    find_batches_for_user,
    get_batch_for_user,
    owned_batch_conditions,
    record_irrigation,
)
from smartfarm.services.irrigation import list_overdue_batches

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/irrigation", tags=["irrigation"])


@router.get("", response_model=List[IrrigationEventRead])
async def list_irrigation_events(
    plant_batch_id: int = Query(..., description="Plant batch to list events for"),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db)
):
    """Irrigation events of one batch, latest scheduled first"""
    batch = await get_batch_for_user(session, plant_batch_id, user.id)
    if not batch:
        raise HTTPException(404, "Plant batch not found")

    result = await session.execute(
        select(IrrigationEvent)
        .where(IrrigationEvent.plant_batch_id == batch.id)
        .order_by(IrrigationEvent.scheduled_date.desc(), IrrigationEvent.id.desc())
    )
    return result.scalars().all()


@router.get("/overdue", response_model=List[OverdueBatchRead])
async def list_overdue_irrigation(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db)
):
    """Batches that need watering, never-irrigated first, then most days overdue"""
    batches = await find_batches_for_user(session, user.id)
    try:
        overdue = list_overdue_batches(batches)
    except ValidationError as e:
        logger.error("Invalid irrigation data for user %s: %s", user.id, e)
        raise HTTPException(422, str(e))
    return [item.to_dict() for item in overdue]


@router.post("", response_model=IrrigationEventRead, status_code=201)
async def create_irrigation_event(
    event_data: IrrigationEventCreate,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db)
):
    """
    Schedule a watering, or record one that already happened.

    A watering counts as done when executed_date is given or status is
    'completed'; it then moves the batch's last irrigation date.
    """
    batch = await get_batch_for_user(session, event_data.plant_batch_id, user.id)
    if not batch:
        raise HTTPException(404, "Plant batch not found")

    is_completed = event_data.executed_date is not None or event_data.status == IrrigationEventStatus.COMPLETED.value

    if is_completed:
        return await record_irrigation(
            session,
            batch.id,
            executed_date=event_data.executed_date or date.today(),
            amount=event_data.water_amount_liters,
            method=event_data.method,
            notes=event_data.notes,
            user_id=user.id,
            scheduled_date=event_data.scheduled_date,
        )

    event = IrrigationEvent(
        plant_batch_id=batch.id,
        scheduled_date=event_data.scheduled_date,
        status=IrrigationEventStatus.PLANNED.value,
        water_amount_liters=event_data.water_amount_liters,
        method=event_data.method,
        notes=event_data.notes,
        created_by=user.id,
    )
    session.add(event)
    await session.commit()
    await session.refresh(event)
    return event


@router.put("/{event_id}/complete", response_model=IrrigationEventRead)
async def complete_irrigation(
    event_id: int,
    completion: IrrigationComplete,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db)
):
    """Mark a planned watering as done"""
    result = await session.execute(
        select(IrrigationEvent, PlantBatch)
        .join(PlantBatch, IrrigationEvent.plant_batch_id == PlantBatch.id)
        .join(Field, PlantBatch.field_id == Field.id)
        .where(IrrigationEvent.id == event_id, *owned_batch_conditions(user.id))
    )
    row = result.first()
    if not row:
        raise HTTPException(404, "Irrigation event not found")

    event, batch = row
    event.executed_date = completion.executed_date or date.today()
    event.status = IrrigationEventStatus.COMPLETED.value
    if completion.water_amount_liters is not None:
        event.water_amount_liters = completion.water_amount_liters
    if completion.notes is not None:
        event.notes = completion.notes
    apply_irrigation(batch, event.executed_date)

    await session.commit()
    await session.refresh(event)
    logger.info("Irrigation event %s completed on %s by user %s", event.id, event.executed_date, user.id)
    return event
