"""
Pytest configuration and shared fixtures.

Every db test gets a fresh in-memory store with the full schema.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from relgraph.core.config import Settings
from relgraph.db.session import Store
from relgraph.main import create_app
from relgraph.models.company import Company
from relgraph.models.meeting import Meeting
from relgraph.utils.normalization import normalize_company_name

IN_MEMORY_URL = "sqlite+aiosqlite://"


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no external deps")
    config.addinivalue_line("markers", "db: uses an in-memory store")
    config.addinivalue_line("markers", "api: exercises the HTTP routers")


@pytest.fixture
def test_settings():
    return Settings(
        DATABASE_URL=IN_MEMORY_URL,
        AUTO_CREATE_SCHEMA=False,
        CONTACT_AUTOLINK_LIMIT=100,
        MEETING_LINK_CONFIDENCE=0.7,
        EMAIL_CONTACT_LINK_CONFIDENCE=0.95,
    )


@pytest_asyncio.fixture
async def store(test_settings):
    """Fresh in-memory store with every table created."""
    store = Store(IN_MEMORY_URL, echo=False, config=test_settings)
    await store.create_all()
    try:
        yield store
    finally:
        await store.dispose()


@pytest_asyncio.fixture
async def db(store):
    """Session whose outer transaction is rolled back after the test."""
    async with store.session() as session:
        yield session


@pytest_asyncio.fixture
async def client(store, test_settings):
    app = create_app(store=store, config=test_settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_company(db):
    """Insert a company row directly, bypassing resolution."""

    async def _make(name: str, **values) -> Company:
        values.setdefault("entity_type", "unknown")
        values.setdefault("classification_source", "auto")
        company = Company(canonical_name=name, normalized_name=normalize_company_name(name), **values)
        db.add(company)
        await db.flush()
        return company

    return _make


@pytest.fixture
def make_meeting(db):
    async def _make(title: str = "Sync", attendees=None, attendee_emails=None, companies=None) -> Meeting:
        meeting = Meeting(title=title)
        meeting.attendees = attendees
        meeting.attendee_emails = attendee_emails
        meeting.companies = companies
        db.add(meeting)
        await db.flush()
        return meeting

    return _make
