"""Shared pytest fixtures for Flowguide tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from flowguide.db.connection import Database
from flowguide.guides.router import get_guide_service
from flowguide.guides.service import GuideService
from flowguide.importer.router import get_import_service
from flowguide.importer.service import ImportService
from flowguide.main import app


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def guide_service(db):
    return GuideService(db)


@pytest.fixture
async def import_service(guide_service):
    return ImportService(guide_service)


@pytest.fixture
async def client(guide_service, import_service):
    """Async test client with in-memory DB wired into the app."""
    app.dependency_overrides[get_guide_service] = lambda: guide_service
    app.dependency_overrides[get_import_service] = lambda: import_service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
