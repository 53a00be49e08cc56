"""User directory: lookup by username and by access token."""

import hashlib
import logging
from typing import Dict, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dcap.domain.errors import ConflictError
from dcap.users.models import UserORM, UserRecord


logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    """Hash an access token for secure storage."""
    return hashlib.sha256(token.encode()).hexdigest()


class UserDirectory(Protocol):
    """Protocol for user lookup."""

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    async def find_by_token(self, token: str) -> Optional[UserRecord]:
        ...


class InMemoryUserDirectory:
    """In-memory user directory for testing."""

    def __init__(self):
        self._users: Dict[str, UserRecord] = {}
        self._by_hash: Dict[str, str] = {}  # token_hash -> username

    async def add_user(self, username: str, pub_key: str, token: Optional[str] = None) -> UserRecord:
        if username in self._users:
            raise ConflictError(f"User '{username}' already exists")
        user = UserRecord(username=username, pub_key=pub_key)
        self._users[username] = user
        if token:
            self._by_hash[hash_token(token)] = username
        return user

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        return self._users.get(username)

    async def find_by_token(self, token: str) -> Optional[UserRecord]:
        username = self._by_hash.get(hash_token(token))
        if username:
            return self._users.get(username)
        return None


class SqlUserDirectory:
    """User directory backed by the ``users`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def add_user(self, username: str, pub_key: str, token: Optional[str] = None) -> UserRecord:
        """Provision a user. Only the token digest is stored."""
        row = UserORM(
            username=username,
            pub_key=pub_key,
            token_hash=hash_token(token) if token else None,
        )
        async with self._session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError(f"User '{username}' already exists") from e
        logger.info(f"Provisioned user {username}")
        return row.to_record()

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserORM).where(UserORM.username == username)
            )
            row = result.scalar_one_or_none()
            return row.to_record() if row else None

    async def find_by_token(self, token: str) -> Optional[UserRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserORM).where(UserORM.token_hash == hash_token(token))
            )
            row = result.scalar_one_or_none()
            return row.to_record() if row else None
