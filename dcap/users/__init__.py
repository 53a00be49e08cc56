"""User directory: who exists, their public keys, their access tokens."""

from dcap.users.directory import (
    InMemoryUserDirectory,
    SqlUserDirectory,
    UserDirectory,
    hash_token,
)
from dcap.users.models import UserORM, UserRecord

__all__ = [
    "InMemoryUserDirectory",
    "SqlUserDirectory",
    "UserDirectory",
    "UserORM",
    "UserRecord",
    "hash_token",
]
