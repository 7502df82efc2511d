"""Global test configuration and fixtures."""

import os
from datetime import timedelta
from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["PROMETHEUS_METRICS_ENABLED"] = "false"

from deckpad.core.security import security_service
from deckpad.domain.entities import Outline, Slide
from deckpad.domain.identity import AuthSession
from deckpad.infrastructure.db.database import Database
from deckpad.infrastructure.identity import InMemoryIdentityProvider
from tests._helpers.fakes import make_outline


# Database fixtures
@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """In-memory database with the presentations table created."""
    db = Database("sqlite+aiosqlite:///:memory:", echo=False)
    await db.initialize()
    await db.create_tables()

    yield db

    await db.close()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.async_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def empty_database() -> AsyncGenerator[Database, None]:
    """Database without tables, so every query hits a missing relation."""
    db = Database("sqlite+aiosqlite:///:memory:", echo=False)
    await db.initialize()

    yield db

    await db.close()


# Authentication fixtures
@pytest.fixture
def test_user_id() -> str:
    return "test-user-123"


@pytest.fixture
def another_user_id() -> str:
    """Another test user ID for authorization tests."""
    return "other-user-456"


@pytest.fixture
def jwt_token(test_user_id: str) -> str:
    return security_service.create_access_token(
        data={"sub": test_user_id}, expires_delta=timedelta(hours=1)
    )


@pytest.fixture
def expired_jwt_token(test_user_id: str) -> str:
    return security_service.create_access_token(
        data={"sub": test_user_id},
        expires_delta=timedelta(seconds=-1),  # Already expired
    )


@pytest.fixture
def auth_headers(jwt_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {jwt_token}"}


@pytest.fixture
def another_auth_headers(another_user_id: str) -> Dict[str, str]:
    token = security_service.create_access_token(
        data={"sub": another_user_id}, expires_delta=timedelta(hours=1)
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_session(test_user_id: str, jwt_token: str) -> AuthSession:
    return AuthSession(user_id=test_user_id, token=jwt_token)


@pytest.fixture
def identity(auth_session: AuthSession) -> InMemoryIdentityProvider:
    """Identity provider with the test user signed in."""
    return InMemoryIdentityProvider(auth_session)


# Domain entity fixtures
@pytest.fixture
def sample_outline() -> Outline:
    return Outline(
        topic="Photosynthesis",
        slides=[
            Slide(
                slide_title="What is photosynthesis?",
                talking_points=["Plants make food", "Light is the energy source"],
                visual_suggestion="A leaf in sunlight",
                notes="Start with a question",
            ),
            Slide(
                slide_title="Inputs",
                talking_points=["Water", "Carbon dioxide", "Light"],
            ),
            Slide(
                slide_title="Outputs",
                talking_points=["Glucose", "Oxygen"],
                notes="Link back to breathing",
            ),
        ],
    )


@pytest.fixture
def outline_factory():
    return make_outline
