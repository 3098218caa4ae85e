"""
Test infrastructure for the core content-type services.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- Tests asserting which entity-service calls a generated service makes use
  an ``AsyncMock`` collaborator (``mock_entity_service``); everything else
  runs against the real ``SqlEntityService`` on the test engine.
"""
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from core_api.database import Base, build_engine, build_session_factory, init_models
from core_api.entity_service import SqlEntityService
from tests.fixtures import ARTICLE, AUTHOR, CATEGORY, HOMEPAGE

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = build_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = build_session_factory(engine_test)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    await init_models(engine_test)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def entity_service() -> SqlEntityService:
    return SqlEntityService(
        session_factory=async_session_test,
        content_types=[AUTHOR, CATEGORY, ARTICLE, HOMEPAGE],
    )


@pytest.fixture
def mock_entity_service() -> AsyncMock:
    """
    Collaborator double recording every call. ``find`` returns None and
    writes echo a stored entity unless a test configures otherwise.
    """
    service = AsyncMock()
    service.find.return_value = None
    service.create.return_value = {"id": 1}
    service.update.return_value = {"id": 1}
    service.delete.return_value = {"id": 1}
    return service
