"""Shared test fixtures for pytest.

Environment defaults are set before any application import so settings load
without an external .env file and no Postgres driver connection is attempted.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic_ai import models
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from dependencies.db import get_db, init_models
from dependencies.design_chat import get_conversation_store, get_design_chat_llm
from fixtures.design_chat_fakes import FakeLLM, InMemoryConversationStore
from main import app
from services.design_chat.store import SqlAlchemyConversationStore


# Block any real model requests in tests
models.ALLOW_MODEL_REQUESTS = False


@pytest.fixture
def memory_store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite so concurrent sessions see the same data."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'jewelforge.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(sqlite_engine, expire_on_commit=False)


@pytest.fixture
def sqlite_store(
    session_factory: async_sessionmaker[AsyncSession],
) -> SqlAlchemyConversationStore:
    return SqlAlchemyConversationStore(session_factory)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest_asyncio.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    sqlite_store: SqlAlchemyConversationStore,
    fake_llm: FakeLLM,
) -> AsyncGenerator[AsyncClient, None]:
    """Async client wired to a SQLite database and the scripted fake LLM."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_conversation_store] = lambda: sqlite_store
    app.dependency_overrides[get_design_chat_llm] = lambda: fake_llm
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()
