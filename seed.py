"""Database seed script with sample users.

This script registers a handful of users for local development, going
through the same repository the API uses.

Usage:
    python seed.py

Features:
    - Idempotent: Safe to run multiple times
    - Creates the tables first when running against a fresh SQLite file
"""

import asyncio

from sportnest.core.config import settings
from sportnest.core.database import close_database, context_registry, engine
from sportnest.core.logging import configure_logging, get_logger
from sportnest.models import Base, User
from sportnest.repositories import DatabaseContextResolver, RepositoryError

configure_logging()
logger = get_logger(__name__)

USERS = [
    {"display_name": "Anna Schmidt", "email": "anna.schmidt@example.com", "phone_number": None},
    {"display_name": "Jonas Weber", "email": "jonas.weber@example.com", "phone_number": "+4915100000001"},
    {"display_name": "Lea Fischer", "email": None, "phone_number": "+4915100000002"},
    {"display_name": "Lukas Meyer", "email": "lukas.meyer@example.com", "phone_number": None},
    {"display_name": "Marie Wagner", "email": "marie.wagner@example.com", "phone_number": "+4915100000003"},
    {"display_name": "Anna Becker", "email": "anna.becker@example.com", "phone_number": None},
    {"display_name": "Paul Hoffmann", "email": None, "phone_number": "+4915100000004"},
    {"display_name": "Sophie Schulz", "email": "sophie.schulz@example.com", "phone_number": None},
]


async def create_tables_for_sqlite() -> None:
    """Create tables when running against SQLite, which has no migrations applied."""
    if settings.database_system != "sqlite":
        return
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_database() -> None:
    """Main seeding function."""
    logger.info("Starting database seeding")
    await create_tables_for_sqlite()

    try:
        async with DatabaseContextResolver(context_registry) as resolver:
            repo = resolver.repository(User)
            if await repo.exist():
                logger.info("Database already contains users. Skipping seed (idempotent).")
                return

            repo.add(*(User(**user_data) for user_data in USERS))
            await repo.save_changes()

            logger.info("Database seeding completed", users=await repo.count())

    except RepositoryError as e:
        logger.error("Error seeding database", error=str(e))
        raise

    finally:
        await close_database()


if __name__ == "__main__":
    asyncio.run(seed_database())
