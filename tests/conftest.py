"""
Shared test fixtures for the smart farm backend test suite.

Provides:
- A throwaway SQLite database (aiosqlite) with all tables created
- A seeded farm: one farmer with fields, plant types and batches, plus a
  second farmer whose data must never leak
- Batch snapshot factories for the pure engine tests
- A scripted AssistantModel fake, so no test touches the network
"""
import logging
import os
import tempfile
from datetime import date, datetime
from pathlib import Path

# Must be set before smartfarm.core.config is imported
_TMP_DIR = Path(tempfile.mkdtemp(prefix="smartfarm-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'app.db'}"
os.environ["OPENAI_API_KEY"] = ""
os.environ.pop("ADMIN_EMAIL", None)
os.environ.pop("ADMIN_PASSWORD", None)

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from smartfarm.models import Base, User, Field, PlantType, PlantBatch, Note
from smartfarm.services.assistant import AssistantModel, ChartSpec, RouteDecision
from smartfarm.services.irrigation import BatchSnapshot

# Keep test output clean
logging.getLogger("smartfarm").setLevel(logging.WARNING)


# ========================== Database Fixtures ==============================


def make_engine(db_path):
    return create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)


async def create_tables(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_farm(session_maker, as_of: date = date(2024, 12, 9)):
    """
    Two farmers. Farmer 1 owns two live fields (and one deleted field) with
    batches in every irrigation tier; farmer 2 owns one overdue batch.

    Returns a dict of the ids tests refer to.
    """
    async with session_maker() as session:
        farmer = User(email="farmer@example.com", hashed_password="x", name="Farmer One")
        other = User(email="other@example.com", hashed_password="x", name="Farmer Two")
        session.add_all([farmer, other])
        await session.flush()

        tomato = PlantType(name="Tomato", irrigation_frequency_days=7)
        wheat = PlantType(name="Wheat", irrigation_frequency_days=3)
        session.add_all([tomato, wheat])
        await session.flush()

        north = Field(user_id=farmer.id, name="North Field")
        south = Field(user_id=farmer.id, name="South Field")
        gone = Field(user_id=farmer.id, name="Old Field", deleted_at=datetime(2024, 1, 1))
        elsewhere = Field(user_id=other.id, name="Neighbour Field")
        session.add_all([north, south, gone, elsewhere])
        await session.flush()

        planted = date(2024, 10, 1)
        on_time = PlantBatch(field_id=north.id, plant_type_id=tomato.id, batch_name="Tomato A",
                             planting_date=planted, last_irrigation_date=date(2024, 12, 5))
        overdue = PlantBatch(field_id=north.id, plant_type_id=tomato.id, batch_name="Tomato B",
                             planting_date=planted, last_irrigation_date=date(2024, 12, 1),
                             current_status="at_risk")
        critical = PlantBatch(field_id=south.id, plant_type_id=wheat.id, batch_name="Wheat A",
                              planting_date=planted, last_irrigation_date=date(2024, 11, 30),
                              current_status="diseased")
        never = PlantBatch(field_id=south.id, plant_type_id=wheat.id, batch_name="Wheat B",
                           planting_date=planted, last_irrigation_date=None)
        deleted_batch = PlantBatch(field_id=north.id, plant_type_id=tomato.id, batch_name="Tomato Gone",
                                   planting_date=planted, last_irrigation_date=None,
                                   deleted_at=datetime(2024, 6, 1))
        in_deleted_field = PlantBatch(field_id=gone.id, plant_type_id=tomato.id, batch_name="Tomato Old",
                                      planting_date=planted, last_irrigation_date=None)
        neighbour = PlantBatch(field_id=elsewhere.id, plant_type_id=tomato.id, batch_name="Neighbour Tomato",
                               planting_date=planted, last_irrigation_date=date(2024, 11, 1),
                               current_status="critical")
        session.add_all([on_time, overdue, critical, never, deleted_batch, in_deleted_field, neighbour])
        await session.flush()

        session.add_all([
            Note(plant_batch_id=overdue.id, note_type="disease", content="Leaf spots", created_by=farmer.id),
            Note(plant_batch_id=neighbour.id, note_type="general", content="Not yours", created_by=other.id),
        ])
        await session.commit()

        return {
            "farmer_id": farmer.id,
            "other_id": other.id,
            "tomato_id": tomato.id,
            "wheat_id": wheat.id,
            "north_id": north.id,
            "south_id": south.id,
            "on_time_id": on_time.id,
            "overdue_id": overdue.id,
            "critical_id": critical.id,
            "never_id": never.id,
            "deleted_batch_id": deleted_batch.id,
            "neighbour_id": neighbour.id,
        }


@pytest_asyncio.fixture()
async def session_maker(tmp_path):
    """Session factory over a fresh SQLite file with all tables created."""
    engine = make_engine(tmp_path / "farm.db")
    await create_tables(engine)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture()
async def farm(session_maker):
    """Seeded farm ids."""
    return await seed_farm(session_maker)


@pytest_asyncio.fixture()
async def session(session_maker, farm):
    async with session_maker() as session:
        yield session


# ========================== Engine Fixtures ================================


@pytest.fixture()
def make_batch():
    """Factory for BatchSnapshot values with sensible defaults."""
    counter = {"next_id": 1}

    def _make(last_irrigation_date=None, frequency=7, status="healthy", name=None, field_name="North Field", batch_id=None):
        if batch_id is None:
            batch_id = counter["next_id"]
        counter["next_id"] = batch_id + 1
        return BatchSnapshot(
            id=batch_id,
            batch_name=name or f"Batch {batch_id}",
            field_name=field_name,
            current_status=status,
            last_irrigation_date=last_irrigation_date,
            irrigation_frequency_days=frequency,
        )

    return _make


# ========================== Assistant Fakes ================================


class FakeAssistantModel(AssistantModel):
    """
    Scripted AssistantModel. Each capability returns the configured value or
    raises it if it is an exception; every call is recorded.
    """

    def __init__(self, decision=None, summary="Here is your answer.", chart=None):
        self.decision = decision
        self.summary = summary
        self.chart = chart
        self.calls = []

    async def classify(self, question, history, user_id):
        self.calls.append(("classify", question, list(history), user_id))
        if isinstance(self.decision, Exception):
            raise self.decision
        return self.decision

    async def summarize(self, question, sql, rows, language):
        self.calls.append(("summarize", question, sql, rows, language))
        if isinstance(self.summary, Exception):
            raise self.summary
        return self.summary

    async def visualize(self, question, sql, rows):
        self.calls.append(("visualize", question, sql, rows))
        if isinstance(self.chart, Exception):
            raise self.chart
        return self.chart

    def called(self, name):
        return [call for call in self.calls if call[0] == name]


def sql_decision(sql, route=1, language="en"):
    return RouteDecision(route=route, data=sql, type="sql", reasoning="test", language=language)


def sample_chart():
    return ChartSpec(
        title="Plants by field",
        chart_type="bar",
        labels=["North Field", "South Field"],
        datasets=[{"label": "Batches", "data": [2, 2]}],
    )
