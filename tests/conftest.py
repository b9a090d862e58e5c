"""
Wanderlust Backend - Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment variables point the app at a throwaway SQLite file and a
       temporary storage directory BEFORE wanderlust is imported (the
       settings singleton reads them at import time).

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:     AsyncMock standing in for AsyncSession
    ├── temp_storage:        empty directory for FileService tests
    ├── sample_image_bytes:  smallest valid JPEG
    ├── database:            tables dropped and recreated for the test
    ├── client / other_client: httpx AsyncClient over ASGITransport,
    │                          each with its own cookie jar (= its own user)
    └── signup / create_listing / add_review: async helpers built on a client
"""

import os
import re
import tempfile
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup (before any wanderlust import)
# ══════════════════════════════════════════════════════════════════════════

_TEST_DIR = tempfile.mkdtemp(prefix="wanderlust_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["SESSION_SECRET"] = "test-session-secret-not-real"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "storage")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["MAP_TOKEN"] = ""

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from wanderlust import models  # noqa: E402,F401
from wanderlust.database import Base, async_session_factory, engine  # noqa: E402

BASE_URL = "http://testserver"
LISTING_URL = re.compile(r"^/listings/([0-9a-f-]{36})$")


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession.

    Usage:
        mock_db_session.execute.return_value = MagicMock(rowcount=2)
        await listing_service.delete_listing(mock_db_session, listing)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# End-to-end Fixtures (real app, real SQLite database)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


async def count_rows(model, **filters: Any) -> int:
    """Count rows of `model` matching equality filters, in a fresh session."""
    query = select(func.count()).select_from(model)
    for column, value in filters.items():
        query = query.where(getattr(model, column) == value)
    async with async_session_factory() as session:
        return (await session.execute(query)).scalar_one()


@pytest.fixture
def row_count():
    return count_rows


@pytest_asyncio.fixture
async def client(database):
    from wanderlust.main import app

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as c:
        yield c


@pytest_asyncio.fixture
async def other_client(database):
    """A second browser: separate cookies, so a separate signed-in user."""
    from wanderlust.main import app

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as c:
        yield c


# ══════════════════════════════════════════════════════════════════════════
# Request Helpers
# ══════════════════════════════════════════════════════════════════════════

def listing_fields(**overrides: Any) -> Dict[str, Any]:
    fields = {
        "title": "Cozy Beachfront Cottage",
        "description": "Escape to this charming beachfront cottage.",
        "price": "1500",
        "location": "Malibu",
        "country": "United States",
    }
    fields.update(overrides)
    return {f"listing[{key}]": value for key, value in fields.items()}


@pytest.fixture
def signup():
    async def _signup(c: AsyncClient, username: str, password: str = "secret-pass"):
        response = await c.post(
            "/signup",
            data={"username": username, "email": f"{username}@example.com", "password": password},
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/listings"
        return response

    return _signup


@pytest.fixture
def create_listing():
    async def _create(c: AsyncClient, files: Optional[dict] = None, **overrides: Any) -> UUID:
        response = await c.post("/listings", data=listing_fields(**overrides), files=files)
        assert response.status_code == 302, response.text
        match = LISTING_URL.match(response.headers["location"])
        assert match, response.headers["location"]
        return UUID(match.group(1))

    return _create


@pytest.fixture
def add_review():
    async def _add(c: AsyncClient, listing_id: UUID, comment: str = "Great stay", rating: int = 5):
        response = await c.post(
            f"/listings/{listing_id}/reviews",
            data={"review[comment]": comment, "review[rating]": str(rating)},
        )
        assert response.status_code == 302
        return response

    return _add
