"""
Pytest Configuration and Fixtures

Provides reusable fixtures for testing the auth core.
"""

import uuid
from datetime import timedelta
from typing import Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from authcore.core.security import TokenSigner
from authcore.core.store import MemoryStore
from authcore.services.credential_service import CredentialService
from authcore.services.identity import normalize_email


# ==================== Clock ====================

class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ==================== Identity Directory ====================

class InMemoryIdentityDirectory:
    """Identity directory holding users in a dict keyed by normalized email."""

    def __init__(self) -> None:
        self.users: Dict[str, uuid.UUID] = {}

    def add_user(self, email: str) -> uuid.UUID:
        user_id = uuid.uuid4()
        self.users[normalize_email(email)] = user_id
        return user_id

    def remove_user(self, email: str) -> None:
        self.users.pop(normalize_email(email), None)

    async def lookup_user_by_email(self, email: str) -> Optional[uuid.UUID]:
        return self.users.get(normalize_email(email))

    async def lookup_user_by_id(self, user_id: uuid.UUID) -> bool:
        return user_id in self.users.values()


@pytest.fixture
def directory() -> InMemoryIdentityDirectory:
    return InMemoryIdentityDirectory()


# ==================== Store / Signer / Service ====================

@pytest.fixture
def store(clock) -> MemoryStore:
    return MemoryStore(clock=clock)


@pytest.fixture
def signer() -> TokenSigner:
    return TokenSigner("test-signing-key", "test-issuer", timedelta(minutes=15))


@pytest.fixture
def service(store, signer, directory) -> CredentialService:
    """Credential service with 5m codes, 60s cooldown, 3 attempts, 7d refresh."""
    return CredentialService(
        store,
        signer,
        directory,
        otp_expiry=timedelta(minutes=5),
        otp_cooldown=timedelta(seconds=60),
        otp_max_attempts=3,
        refresh_expiry=timedelta(days=7),
    )


# ==================== Database Fixtures ====================

@pytest.fixture
def mock_async_session() -> AsyncMock:
    """
    Create a mock async database session.

    Returns:
        AsyncMock configured to behave like AsyncSession.
    """
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def mock_session_maker(mock_async_session) -> MagicMock:
    """
    Create a mock async_sessionmaker yielding ``mock_async_session``.

    Usage:
        async with mock_session_maker() as session: ...
    """
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=mock_async_session)
    context.__aexit__ = AsyncMock(return_value=False)
    maker = MagicMock(return_value=context)
    return maker


@pytest.fixture
def mock_execute_result():
    """
    Factory fixture to create mock SQLAlchemy results.

    Usage:
        result = mock_execute_result(scalar=some_uuid)
    """
    def _create_result(scalar=None):
        result = MagicMock()
        result.scalar_one_or_none.return_value = scalar
        return result
    return _create_result
