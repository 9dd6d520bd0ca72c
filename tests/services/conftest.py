"""Service test fixtures — async SQLite DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test session factory
    - get_economy_rules overridden with the factory rules (tier 1 = 5000), and
      the same rules installed as the loaded economy so readiness reports ready
    - db_manager patched so the readiness probe sees the test engine

Design Decisions:
    - StaticPool: aiosqlite :memory: databases live per connection, so every
      session must share the one connection that holds the schema
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

import idle_vault.api.dependencies as dependencies
from idle_vault.api.dependencies import get_economy_rules
from idle_vault.db.base import Base
from idle_vault.infrastructure.database import get_db, DatabaseSessionManager
import idle_vault.infrastructure.database as db_module
import idle_vault.models  # noqa: F401
from idle_vault.main import app
from tests.factories import make_rules


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB and rules dependencies overridden."""
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory

    async def override_get_db():
        async with fake_manager.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    # zero-arg override: FastAPI would read make_rules(**overrides) as query params
    app.dependency_overrides[get_economy_rules] = lambda: make_rules()
    original_rules = dependencies.economy_rules
    dependencies.init_economy(make_rules())

    original_manager = db_module.db_manager
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
    dependencies.economy_rules = original_rules
