"""
Pytest configuration and fixtures for BeeTagged tests.
"""

import os

# Point the application at an in-memory database before app modules load settings
os.environ.setdefault("DB_URL", "sqlite://")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import get_db
from app.main import app
from app.models import Base
from app.services.contact_record import ContactRecord
from app.services.contact_store import InMemoryContactStore


# Configure pytest-asyncio to use auto mode for async tests
pytest_plugins = ('pytest_asyncio',)


@pytest.fixture(scope="session")
def engine():
    """Create database engine for testing.

    A single shared in-memory SQLite connection; tests use transactions that
    are rolled back after each test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    """Provide a database session for tests.

    Each test runs in its own transaction that is rolled back after the test,
    ensuring test isolation.
    """
    connection = engine.connect()
    transaction = connection.begin()

    # Create a session bound to the connection
    session_factory = sessionmaker(bind=connection)
    session = session_factory()

    yield session

    # Cleanup: rollback transaction and close
    session.close()
    if transaction.is_active:
        transaction.rollback()
    connection.close()


@pytest.fixture
def memory_store() -> InMemoryContactStore:
    """Empty in-memory contact store."""
    return InMemoryContactStore()


@pytest.fixture
def client(db_session):
    """Create a test client that uses the test database session."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_contact() -> ContactRecord:
    """An unsaved contact with the fields a LinkedIn export provides."""
    return ContactRecord(
        name="Jane Doe",
        email="jane@acme.com",
        company="Acme Corp",
        position="Engineer",
        location="Austin, TX",
        connected_on="01 Jan 2024",
        source="linkedin",
    )
