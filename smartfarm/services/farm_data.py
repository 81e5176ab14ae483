# smartfarm/services/farm_data.py
"""
Data access used by the irrigation engine, the dashboard and the assistant.

Every read is scoped to the requesting user through the field owner and skips
soft-deleted fields and batches.
"""
import asyncio
import logging
import re
import time
from datetime import date, datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy import select, func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from smartfarm.core.config import SQL_TIMEOUT_SECONDS
from smartfarm.core.errors import QueryExecutionError
from smartfarm.models import (
    Field, PlantType, PlantBatch, PlantStatus, IrrigationEvent, IrrigationEventStatus, Note
)
from smartfarm.services.irrigation import BatchSnapshot
from smartfarm.services.sql_guard import ensure_read_only

logger = logging.getLogger(__name__)

# Same named-parameter syntax text() recognises; "::date" casts are not parameters
_BIND_PARAM = re.compile(r"(?<![:\w\\]):(\w+)(?!:)")

# Backstop for drivers that ignore the database-side limit
TIMEOUT_GRACE_SECONDS = 2
# SQLite VM instructions between deadline checks
SQLITE_PROGRESS_STEPS = 10000


def owned_batch_conditions(user_id: int) -> list:
    """WHERE clauses selecting a user's live batches (requires a join to Field)."""
    return [
        Field.user_id == user_id,
        Field.deleted_at == None,
        PlantBatch.deleted_at == None,
    ]


async def find_batches_for_user(session: AsyncSession, user_id: int) -> List[BatchSnapshot]:
    """
    Load the irrigation-relevant columns of every live batch the user owns.

    Args:
        session: Database session
        user_id: Owner of the fields

    Returns:
        Batch snapshots in batch id order
    """
    result = await session.execute(
        select(PlantBatch, Field.name, PlantType.irrigation_frequency_days)
        .join(Field, PlantBatch.field_id == Field.id)
        .join(PlantType, PlantBatch.plant_type_id == PlantType.id)
        .where(*owned_batch_conditions(user_id))
        .order_by(PlantBatch.id)
    )

    return [
        BatchSnapshot(
            id=batch.id,
            batch_name=batch.batch_name,
            field_name=field_name,
            current_status=batch.current_status,
            last_irrigation_date=batch.last_irrigation_date,
            irrigation_frequency_days=frequency,
        )
        for batch, field_name, frequency in result.all()
    ]


async def find_plant_type(session: AsyncSession, batch_id: int) -> Optional[PlantType]:
    """Plant type of a batch, or None if the batch does not exist."""
    result = await session.execute(
        select(PlantType)
        .join(PlantBatch, PlantBatch.plant_type_id == PlantType.id)
        .where(PlantBatch.id == batch_id)
    )
    return result.scalars().first()


async def get_batch_for_user(session: AsyncSession, batch_id: int, user_id: int) -> Optional[PlantBatch]:
    """A live batch with its field and plant type loaded, if the user owns it."""
    result = await session.execute(
        select(PlantBatch)
        .join(Field, PlantBatch.field_id == Field.id)
        .options(selectinload(PlantBatch.field), selectinload(PlantBatch.plant_type))
        .where(PlantBatch.id == batch_id, *owned_batch_conditions(user_id))
    )
    return result.scalars().first()


async def record_irrigation(
    session: AsyncSession,
    batch_id: int,
    executed_date: date,
    amount: Optional[float],
    method: Optional[str],
    notes: Optional[str],
    user_id: int,
    scheduled_date: Optional[date] = None,
) -> IrrigationEvent:
    """
    Store a completed watering and move the batch's last irrigation date forward.

    A back-dated entry older than the current last irrigation date is stored
    but does not move the date backwards.
    """
    batch = await session.get(PlantBatch, batch_id)
    if batch is None:
        raise LookupError(f"Plant batch {batch_id} not found")

    event = IrrigationEvent(
        plant_batch_id=batch_id,
        scheduled_date=scheduled_date or executed_date,
        executed_date=executed_date,
        status=IrrigationEventStatus.COMPLETED.value,
        water_amount_liters=amount,
        method=method,
        notes=notes,
        created_by=user_id,
    )
    session.add(event)
    apply_irrigation(batch, executed_date)

    await session.commit()
    await session.refresh(event)
    logger.info("Recorded irrigation for batch %s on %s by user %s", batch_id, executed_date, user_id)
    return event


def apply_irrigation(batch: PlantBatch, executed_date: date) -> None:
    if batch.last_irrigation_date is None or executed_date >= batch.last_irrigation_date:
        batch.last_irrigation_date = executed_date


async def execute_read_only_sql(
    session: AsyncSession,
    query: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = SQL_TIMEOUT_SECONDS,
) -> List[Dict[str, Any]]:
    """
    Run one SELECT statement and return its rows as dicts.

    Named parameters that appear in the statement (e.g. :user_id) are bound
    from params; unused params are ignored.

    Raises:
        UnsafeQueryError: if the statement fails the read-only filter
        QueryExecutionError: if the database rejects the statement or it times out
    """
    statement = ensure_read_only(query)
    wanted = set(_BIND_PARAM.findall(statement))
    bind = {key: value for key, value in (params or {}).items() if key in wanted}
    timed_out = f"Query timed out after {timeout:g} seconds"

    started = time.monotonic()
    statement, clear_limit = await _limit_statement_time(session, statement, timeout)
    try:
        result = await asyncio.wait_for(
            session.execute(text(statement), bind),
            timeout + TIMEOUT_GRACE_SECONDS,
        )
        rows = [dict(row) for row in result.mappings().all()]
    except asyncio.TimeoutError as e:
        # The database did not stop the statement; drop the connection rather than wait on it
        logger.error("Statement outlived its %gs database limit, invalidating connection", timeout)
        await session.invalidate()
        raise QueryExecutionError(timed_out) from e
    except SQLAlchemyError as e:
        if clear_limit:
            await clear_limit()
        await session.rollback()
        if time.monotonic() - started >= timeout:
            raise QueryExecutionError(timed_out) from e
        raise QueryExecutionError(str(getattr(e, "orig", None) or e)) from e

    if clear_limit:
        await clear_limit()
    return rows


async def _limit_statement_time(
    session: AsyncSession, statement: str, timeout: float
) -> Tuple[str, Optional[Callable[[], Awaitable[None]]]]:
    """
    Make the database itself abort the statement after `timeout` seconds.

    Returns the statement to execute and, where the limit is set on the
    connection, a coroutine function that removes it again.
    """
    connection = await session.connection()
    dialect = connection.dialect
    millis = max(1, int(timeout * 1000))

    if dialect.name == "sqlite":
        raw = await connection.get_raw_connection()
        driver_connection = raw.driver_connection
        deadline = time.monotonic() + timeout

        def past_deadline():
            return 1 if time.monotonic() > deadline else 0

        await driver_connection.set_progress_handler(past_deadline, SQLITE_PROGRESS_STEPS)

        async def clear():
            await driver_connection.set_progress_handler(None, 0)

        return statement, clear

    if getattr(dialect, "is_mariadb", False):
        return f"SET STATEMENT max_statement_time={timeout:g} FOR {statement}", None

    if dialect.name == "mysql":
        return f"SELECT /*+ MAX_EXECUTION_TIME({millis}) */{statement[len('SELECT'):]}", None

    if dialect.name == "postgresql":
        await connection.execute(text(f"SET LOCAL statement_timeout = {millis}"))
        return statement, None

    logger.warning("No statement time limit available for dialect %s", dialect.name)
    return statement, None


# Dashboard statistics

async def count_batches(session: AsyncSession, user_id: int) -> int:
    result = await session.execute(
        select(func.count(PlantBatch.id))
        .join(Field, PlantBatch.field_id == Field.id)
        .where(*owned_batch_conditions(user_id))
    )
    return result.scalar() or 0


async def count_batches_by_status(session: AsyncSession, user_id: int) -> List[Dict[str, Any]]:
    result = await session.execute(
        select(PlantBatch.current_status, func.count(PlantBatch.id))
        .join(Field, PlantBatch.field_id == Field.id)
        .where(*owned_batch_conditions(user_id))
        .group_by(PlantBatch.current_status)
        .order_by(PlantBatch.current_status)
    )
    return [{"status": status, "count": count} for status, count in result.all()]


async def count_batches_by_field(session: AsyncSession, user_id: int) -> List[Dict[str, Any]]:
    result = await session.execute(
        select(Field.id, Field.name, func.count(PlantBatch.id))
        .select_from(PlantBatch)
        .join(Field, PlantBatch.field_id == Field.id)
        .where(*owned_batch_conditions(user_id))
        .group_by(Field.id, Field.name)
        .order_by(Field.name)
    )
    return [
        {"field_id": field_id, "field_name": field_name, "count": count}
        for field_id, field_name, count in result.all()
    ]


async def count_problem_batches(session: AsyncSession, user_id: int) -> int:
    """Batches whose status is anything but healthy."""
    result = await session.execute(
        select(func.count(PlantBatch.id))
        .join(Field, PlantBatch.field_id == Field.id)
        .where(*owned_batch_conditions(user_id), PlantBatch.current_status != PlantStatus.HEALTHY.value)
    )
    return result.scalar() or 0


async def count_recent_notes(session: AsyncSession, user_id: int, days: int = 7) -> int:
    since = datetime.utcnow() - timedelta(days=days)
    result = await session.execute(
        select(func.count(Note.id))
        .join(PlantBatch, Note.plant_batch_id == PlantBatch.id)
        .join(Field, PlantBatch.field_id == Field.id)
        .where(Field.user_id == user_id, Note.deleted_at == None, Note.created_at >= since)
    )
    return result.scalar() or 0
