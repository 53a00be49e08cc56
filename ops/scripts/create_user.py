#!/usr/bin/env python3
"""
Provision a user: generate an X25519 key pair and an access token, and
store the public key and token digest in the users table.

The private key (encrypted with the given password) and the token are
printed once and never stored.

Usage:
    python ops/scripts/create_user.py alice 'correct horse battery staple'
"""
import asyncio
import secrets
import sys
from pathlib import Path

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(ROOT))

from dcap.core.config import get_settings
from dcap.core.database import create_engine, create_session_factory, init_database
from dcap.crypto.cipher import generate_keypair
from dcap.domain.errors import ConflictError
from dcap.users.directory import SqlUserDirectory


async def provision(username: str, password: str) -> int:
    settings = get_settings()
    engine = create_engine(settings.database_url)
    try:
        await init_database(engine)
        users = SqlUserDirectory(create_session_factory(engine))

        private_pem, public_pem = generate_keypair(password)
        token = f"dcap_{secrets.token_urlsafe(32)}"
        try:
            await users.add_user(username, public_pem, token=token)
        except ConflictError as e:
            print(e.message)
            return 1
    finally:
        await engine.dispose()

    print(f"Created user {username}")
    print(f"Access token (X-Access-Token): {token}")
    print("Private key (keep it; send as priv_key with your password):")
    print(private_pem)
    return 0


def main():
    if len(sys.argv) != 3:
        print(f"Usage: {sys.argv[0]} <username> <password>")
        return 1
    return asyncio.run(provision(sys.argv[1], sys.argv[2]))


if __name__ == "__main__":
    sys.exit(main())
