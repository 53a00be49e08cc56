"""
User models.

UserORM maps the ``users`` table; UserRecord is the domain view handed to
the document service (username and public key only).
"""
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from dcap.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UserRecord:
    """A known user and the public key their documents are encrypted to."""
    username: str
    pub_key: str


class UserORM(Base):
    """User table - identity, public key and access-token digest."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(128), unique=True, nullable=False, index=True)
    pub_key = Column(Text, nullable=False)
    token_hash = Column(String(64), unique=True, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_record(self) -> UserRecord:
        return UserRecord(username=self.username, pub_key=self.pub_key)

    def __repr__(self):
        return f"<UserORM(username='{self.username}')>"
