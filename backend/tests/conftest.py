"""
Cellar Tracker Backend - Test Configuration (conftest.py)
==========================================================

What:  Shared pytest fixtures for the whole suite.
How:   The environment is pointed at a throwaway SQLite file and upload
       directory before any `app` module is imported, because app.config
       reads it once at import time.

Fixture Hierarchy:
    Function-scoped:
    ├── database: creates all tables, drops them afterwards
    │   ├── db_session: AsyncSession on the test database
    │   └── test_client: HTTPX AsyncClient wired to the FastAPI app
    ├── upload_dir: fresh directory swapped into the image_service singleton
    ├── mock_db_session: AsyncMock standing in for AsyncSession
    └── make_image: Pillow-generated image bytes in any supported format
"""

import io
import os
import tempfile
from typing import Callable, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup (must run before any app import)
# ══════════════════════════════════════════════════════════════════════════

_TEST_ROOT = tempfile.mkdtemp(prefix="cellar_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/test.db"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["LOG_LEVEL"] = "WARNING"

from app.database import Base, async_session_factory, engine  # noqa: E402
import app.models  # noqa: E402,F401


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """Empty schema for one test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(database):
    """
    A session for calling services directly.

    Tests commit explicitly when they want the data visible to another
    session (e.g. the API client).
    """
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Mock async session for service tests that inject failures.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Upload Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Points the shared image_service at an empty per-test directory."""
    from app.services.image_service import image_service

    directory = tmp_path / "uploads"
    directory.mkdir()
    monkeypatch.setattr(image_service, "upload_dir", directory.resolve())
    return directory.resolve()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """
    Factory for real encoded images.

    Usage:
        png = make_image("PNG", size=(640, 480))
    """

    def _make(
        image_format: str = "JPEG",
        size: Tuple[int, int] = (400, 300),
        color: Tuple[int, int, int] = (128, 0, 32),
    ) -> bytes:
        mode = "RGBA" if image_format == "PNG" else "RGB"
        fill = color + (255,) if mode == "RGBA" else color
        buffer = io.BytesIO()
        Image.new(mode, size, fill).save(buffer, format=image_format)
        return buffer.getvalue()

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(database, upload_dir):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ══════════════════════════════════════════════════════════════════════════
# Data Helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def wine_payload() -> Callable[..., dict]:
    """camelCase wine JSON as the browser sends it; override any field by keyword."""

    def _payload(bin_id: int, **overrides) -> dict:
        payload = {
            "binId": bin_id,
            "name": "Château Margaux",
            "vintage": 2015,
            "region": "Bordeaux",
            "variety": "Cabernet Sauvignon",
            "producer": "Château Margaux",
            "drinkFrom": 2025,
            "drinkTo": 2050,
        }
        payload.update(overrides)
        return payload

    return _payload
