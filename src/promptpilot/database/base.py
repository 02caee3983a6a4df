"""Database connection and session management."""

from typing import AsyncGenerator
from urllib.parse import quote_plus
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from ..config import settings

# Create base class for models
Base = declarative_base()


def build_database_url() -> str:
    """Return the configured URL, or one built from the MySQL parts."""
    if settings.database_url:
        return settings.database_url
    return (
        f"mysql+aiomysql://{settings.mysql_user}:{quote_plus(settings.mysql_password)}"
        f"@{settings.mysql_host}:{settings.mysql_port}/{settings.mysql_database}"
    )


DATABASE_URL = build_database_url()

# Create async engine
engine = None


def get_async_engine():
    """Get or create async database engine."""
    global engine
    if engine is None:
        engine_params = {"echo": settings.debug, "pool_pre_ping": True}
        # SQLite uses a static pool without size limits
        if not DATABASE_URL.startswith("sqlite"):
            engine_params.update(pool_size=10, max_overflow=20)
        engine = create_async_engine(DATABASE_URL, **engine_params)
    return engine


# Create async session factory
async_session = None


def get_async_session():
    """Get async session factory."""
    global async_session
    if async_session is None:
        async_session = async_sessionmaker(
            get_async_engine(), class_=AsyncSession, expire_on_commit=False
        )
    return async_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Commits when the request handler returns, rolls back on error.
    """
    session_factory = get_async_session()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
