"""
Academia API — Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before the `academia` package is first
       imported, so the module-level settings and engine point at a
       throwaway SQLite file.

Fixtures:
    ├── mock_db_session: AsyncMock standing in for AsyncSession (service unit tests)
    ├── sample_student:  Transient Student with id and timestamps filled in
    └── client:          HTTPX AsyncClient bound to the real app over a fresh schema
"""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings for testing BEFORE any academia imports
_TEST_DIR = tempfile.mkdtemp(prefix="academia_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.sqlite')}"
os.environ["RESET_SCHEMA_ON_START"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get(mock_db_session):
            mock_db_session.get.return_value = student
            result = await service.get_student(mock_db_session, "1")
    """
    session = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_student():
    """A Student as it would look after being loaded from the database."""
    from academia.models.student import Student

    now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    student = Student(nombre="Ana", email="ana@example.com")
    student.id = 1
    student.created_at = now
    student.updated_at = now
    return student


@pytest_asyncio.fixture
async def client():
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    ASGITransport does not run the lifespan, so the schema is rebuilt here
    (destructive mode) to give every test an empty table.
    """
    from academia.database import dispose_engine, init_schema
    from academia.main import app

    await init_schema(reset=True)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    await dispose_engine()
