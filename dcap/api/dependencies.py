"""FastAPI dependency injection for API endpoints."""

import logging
from typing import Optional

from fastapi import Depends, Header, Query, Request

from dcap.domain.document_service import DocumentService
from dcap.domain.errors import AuthError
from dcap.users.directory import UserDirectory


logger = logging.getLogger(__name__)


def get_document_service(request: Request) -> DocumentService:
    """Document service wired at startup."""
    return request.app.state.document_service


def get_user_directory(request: Request) -> UserDirectory:
    return request.app.state.user_directory


async def get_current_username(
    x_access_token: Optional[str] = Header(None),
    token: Optional[str] = Query(None),
    users: UserDirectory = Depends(get_user_directory),
) -> str:
    """Resolve the caller from the X-Access-Token header (or ``token`` query).

    Raises:
        AuthError: No token, or the token does not belong to any user.
    """
    access_token = x_access_token or token
    if not access_token:
        raise AuthError("No token provided.")

    user = await users.find_by_token(access_token)
    if user is None:
        logger.debug("Rejected unknown access token")
        raise AuthError("Failed to authenticate token.")
    return user.username
