# smartfarm/init_database.py - Database initialization and seed data
"""
Creates the tables and the seed rows the server needs on a fresh database:
the admin account from ADMIN_EMAIL/ADMIN_PASSWORD and a starter set of plant
types. Runs on application startup; existing rows are left alone.
"""
import asyncio
import logging

from sqlalchemy import select

from smartfarm.core.config import ADMIN_EMAIL, ADMIN_PASSWORD
from smartfarm.core.database import async_session_maker, create_db_and_tables
from smartfarm.models import PlantType, User

logger = logging.getLogger(__name__)

DEFAULT_PLANT_TYPES = [
    # (name, scientific_name, irrigation_frequency_days, growth_duration_days)
    ("Tomato", "Solanum lycopersicum", 2, 80),
    ("Cucumber", "Cucumis sativus", 2, 60),
    ("Pepper", "Capsicum annuum", 3, 90),
    ("Potato", "Solanum tuberosum", 4, 100),
    ("Wheat", "Triticum aestivum", 7, 120),
    ("Apple", "Malus domestica", 10, None),
]


async def seed_plant_types(session) -> int:
    """Insert the default plant types that are missing. Returns how many were added."""
    result = await session.execute(select(PlantType.name))
    existing = set(result.scalars().all())

    added = 0
    for name, scientific_name, frequency, growth_days in DEFAULT_PLANT_TYPES:
        if name in existing:
            continue
        session.add(PlantType(
            name=name,
            scientific_name=scientific_name,
            irrigation_frequency_days=frequency,
            growth_duration_days=growth_days,
        ))
        added += 1

    if added:
        await session.commit()
        logger.info("Added %d default plant types", added)
    return added


async def seed_admin(session) -> bool:
    """Create the admin account if it is configured and does not exist yet."""
    if not ADMIN_EMAIL or not ADMIN_PASSWORD:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin account")
        return False

    result = await session.execute(select(User).where(User.email == ADMIN_EMAIL))
    if result.scalars().first():
        logger.info("Admin already exists.")
        return False

    from fastapi_users.db import SQLAlchemyUserDatabase
    from smartfarm.auth.manager import UserManager
    from smartfarm.schemas import UserCreate

    manager = UserManager(SQLAlchemyUserDatabase(session, User))
    await manager.create(UserCreate(
        email=ADMIN_EMAIL,
        password=ADMIN_PASSWORD,
        name="Administrator",
        role="admin",
        is_superuser=True,
        is_active=True,
        is_verified=True,
    ))
    logger.info("Admin %s created.", ADMIN_EMAIL)
    return True


async def init_database():
    """Create tables and seed rows."""
    await create_db_and_tables()
    logger.info("Tables created or already exist.")
    async with async_session_maker() as session:
        await seed_plant_types(session)
        await seed_admin(session)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_database())
