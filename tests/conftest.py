"""
Pytest configuration and fixtures for PromptPilot tests.
"""

import os

# Settings are read at import time; point them at test backends first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("CONNECTION_MONITOR_ENABLED", "false")
os.environ.setdefault("MODEL_ENHANCE_DELAY_SECONDS", "0")

from typing import AsyncGenerator, Dict

import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from promptpilot.main import app
from promptpilot.api.deps import get_website_fetcher, get_youtube_service
from promptpilot.database import Base, get_db
from promptpilot.services.llm_client import get_llm_client
from promptpilot.services.response_cache import ResponseCache, get_response_cache
from promptpilot.services.website_context import WebsiteContextFetcher
from promptpilot.services.youtube_service import YouTubeService

from tests.mocks import OTHER_USER_ID, USER_ID, FakeLLMClient, page_transport


# Test database URL (in-memory SQLite shared through a single connection)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def cache() -> ResponseCache:
    return ResponseCache(use_redis=False)


@pytest.fixture
def website_pages() -> Dict[str, httpx.Response]:
    """URL -> response served to the website context fetcher."""
    return {}


@pytest.fixture
def youtube_pages() -> Dict[str, httpx.Response]:
    """URL -> response served to the YouTube service."""
    return {}


@pytest.fixture(scope="function")
async def client(
    test_engine, llm, cache, website_pages, youtube_pages
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""
    # Create session factory for test database
    async_session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Override the get_db dependency
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with async_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_client] = lambda: llm
    app.dependency_overrides[get_response_cache] = lambda: cache
    app.dependency_overrides[get_website_fetcher] = lambda: WebsiteContextFetcher(
        transport=page_transport(website_pages)
    )
    app.dependency_overrides[get_youtube_service] = lambda: YouTubeService(
        api_key="yt-test-key", transport=page_transport(youtube_pages)
    )

    # Create test client
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"X-User-Id": USER_ID}


@pytest.fixture
def other_headers() -> Dict[str, str]:
    return {"X-User-Id": OTHER_USER_ID}


@pytest.fixture
def sample_prompt_data() -> dict:
    """Sample saved prompt."""
    return {
        "title": "Product launch email",
        "promptText": "Write an email announcing our new running shoe",
        "masterCommand": "Keep it under 150 words",
        "primaryToggle": "coding",
        "variables": [
            {"id": "v-1", "name": "Product", "value": "running shoe", "category": "Content"}
        ],
        "tags": [{"category": "business", "subcategory": "marketing"}],
    }


@pytest.fixture
def sample_template_data() -> dict:
    """Sample user template with pillars out of order."""
    return {
        "title": "Story Outline",
        "description": "Outline a short story",
        "pillars": [
            {"title": "Plot", "description": "Main events", "order": 1},
            {"title": "Characters", "description": "Who is involved", "order": 0},
        ],
        "systemPrefix": "You are a story editor.",
        "temperature": 0.5,
        "maxChars": 2000,
    }
