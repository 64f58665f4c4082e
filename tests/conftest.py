"""Shared test fixtures and configuration."""
import os
import tempfile
import pytest
from unittest.mock import AsyncMock, Mock
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
_test_dir = tempfile.mkdtemp(prefix="voice-intake-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_dir}/test.db"
os.environ["DASHBOARD_PASSWORD"] = "testpass123"
os.environ["OPENAI_API_KEY"] = ""
os.environ["VALIDATE_TWILIO_SIGNATURE"] = "false"
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-token")
os.environ.setdefault("BUSINESS_NAME", "Test Clinic")

from app.main import app
from app.api import auth
from app.core.rate_limit import caller_limiter, login_limiter
from app.db.database import AsyncSessionLocal, Base, reset_db
from app.services.call_session.store import session_store
from app.services.persistence.calls import CallPersistenceService


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture(autouse=True)
def clean_state():
    """Clear in-memory sessions and rate limits before and after each test."""
    session_store.clear()
    auth._sessions.clear()
    caller_limiter.reset()
    login_limiter.reset()
    yield
    session_store.clear()
    auth._sessions.clear()
    caller_limiter.reset()
    login_limiter.reset()


@pytest.fixture
def test_client():
    """FastAPI test client running the app lifespan against an empty database."""
    with TestClient(app) as client:
        client.portal.call(reset_db)
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def authenticated_client(test_client):
    """Test client holding a valid dashboard session cookie."""
    response = test_client.post("/api/auth/login", json={"password": "testpass123"})
    assert response.status_code == 200
    return test_client


@pytest.fixture
def call_ivr(test_client):
    """Post one IVR turn the way Twilio does."""

    def _call(call_sid="CA100", step="detect", speech=None, digits=None, **query):
        params = {"step": step, **query}
        data = {}
        if call_sid is not None:
            data["CallSid"] = call_sid
        if speech is not None:
            data["SpeechResult"] = speech
        if digits is not None:
            data["Digits"] = digits
        return test_client.post("/webhooks/voice/ivr", params=params, data=data)

    return _call


@pytest.fixture
def mock_openai():
    """Mock OpenAI API client."""
    mock_client = Mock()
    mock_completion = Mock()
    mock_completion.choices = [Mock(message=Mock(content="  Sure, we open at nine.  "))]
    mock_client.chat.completions.create = AsyncMock(return_value=mock_completion)
    return mock_client


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test"
    )


@pytest.fixture
def stored_call(test_client):
    """Read a call record from the app database."""

    def _load(call_sid):
        async def _query():
            async with AsyncSessionLocal() as db:
                return await CallPersistenceService(db).get_call_by_sid(call_sid)

        return test_client.portal.call(_query)

    return _load
