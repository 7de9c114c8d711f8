"""
Identity Directory

Resolves emails to durable user identifiers. The credential service only
depends on the ``IdentityDirectory`` protocol; ``SQLAlchemyIdentityDirectory``
is the adapter over the ``users`` table.
"""

import uuid
from typing import Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authcore.models.user import User


def normalize_email(email: str) -> str:
    """Canonical form used for every lookup and store key."""
    return email.strip().lower()


class IdentityDirectory(Protocol):
    async def lookup_user_by_email(self, email: str) -> Optional[uuid.UUID]: ...

    async def lookup_user_by_id(self, user_id: uuid.UUID) -> bool: ...


class SQLAlchemyIdentityDirectory:
    """Identity directory backed by the ``users`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def lookup_user_by_email(self, email: str) -> Optional[uuid.UUID]:
        """
        Find an active user by email, ignoring case.

        Returns:
            uuid.UUID | None: The user's id, or None if no active user matches.
        """
        async with self._session_maker() as session:
            result = await session.execute(
                select(User.id).where(
                    func.lower(User.email) == normalize_email(email),
                    User.is_active.is_(True),
                )
            )
            return result.scalar_one_or_none()

    async def lookup_user_by_id(self, user_id: uuid.UUID) -> bool:
        async with self._session_maker() as session:
            result = await session.execute(
                select(User.id).where(
                    User.id == user_id,
                    User.is_active.is_(True),
                )
            )
            return result.scalar_one_or_none() is not None
