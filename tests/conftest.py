"""
Test configuration and fixtures for pytest.

Integration tests run the application against a fresh SQLite database file
per test through aiosqlite. The file is opened in WAL mode so the request
session and the sessions opened by the transaction coordinator can work side
by side, and SAVEPOINTs are enabled by taking over transaction control from
the driver.
"""

from typing import AsyncGenerator, Dict
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app import models  # noqa
from app.api.deps import get_email_service
from app.db.async_session import get_async_db, get_session_factory
from app.db.base_class import Base
from app.db.transaction import TransactionCoordinator
from app.main import create_app
from app.utils.logger import create_logger


@pytest.fixture
def test_logger():
    return create_logger("TEST", "WARNING", enable_colors=False)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """A SQLite database file with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN so nested transactions work
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def transactions(session_factory, test_logger) -> TransactionCoordinator:
    return TransactionCoordinator(session_factory, test_logger)


@pytest.fixture
def email_service():
    """Stands in for Resend; inspect ``send_password_reset_code.call_args`` for the code sent."""
    return MagicMock()


@pytest.fixture
def app(session_factory, test_logger, email_service):
    """The application with its database dependencies pointed at the test file."""
    application = create_app(test_logger)

    async def override_get_async_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def override_get_session_factory():
        return session_factory

    application.dependency_overrides[get_async_db] = override_get_async_db
    application.dependency_overrides[get_session_factory] = override_get_session_factory
    application.dependency_overrides[get_email_service] = lambda: email_service
    yield application
    application.dependency_overrides = {}


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register a user through the API; returns the response body plus auth headers."""
    counter = {"n": 0}

    async def _register(name: str = "Test User", email: str = None) -> Dict:
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": email,
                "password": "secure_password123",
                "name": name,
                "device_id": "test-device",
                "agree_to_terms": True,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        body["headers"] = {"Authorization": f"Bearer {body['access_token']}"}
        return body

    return _register
