"""Database initialization and health check."""

import asyncio
import logging
from sqlalchemy import text

from .base import Base, DATABASE_URL, get_async_engine, get_async_session
from .seed import seed_default_templates

logger = logging.getLogger(__name__)


async def check_database_connection() -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


async def init_database():
    """
    Initialize database connection, create tables and seed default templates.
    """
    logger.info(f"Connecting to database at {DATABASE_URL.split('@')[-1]}")

    if not await check_database_connection():
        logger.warning("Database connection failed; CRUD endpoints will be unavailable")
        return

    logger.info("Database connection successful")

    # Import models so they register with Base
    from . import models  # noqa: F401

    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        session_factory = get_async_session()
        async with session_factory() as session:
            inserted = await seed_default_templates(session)
            if inserted:
                logger.info(f"Seeded {inserted} default prompt template(s)")
    except Exception as e:
        logger.warning(f"Could not seed default templates: {e}")


def run_init():
    """Run database initialization synchronously."""
    asyncio.run(init_database())
