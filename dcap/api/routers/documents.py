"""Document endpoints: read, create, update, delete."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse

from dcap.api.dependencies import (
    get_current_username,
    get_document_service,
    get_user_directory,
)
from dcap.api.error_handlers import failure_response
from dcap.api.schemas import (
    DocumentWriteRequest,
    DocumentWriteResponse,
    ErrorResponse,
    SecretsRequest,
)
from dcap.domain.document_service import DocumentService
from dcap.users.directory import UserDirectory


router = APIRouter(prefix="/type", tags=["documents"])

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
    401: {"model": ErrorResponse, "description": "Missing token or secrets"},
    403: {"model": ErrorResponse, "description": "Not the document owner"},
    404: {"model": ErrorResponse, "description": "Type or document not found"},
}


async def _optional_username(
    users: UserDirectory,
    x_access_token: Optional[str],
    token: Optional[str],
) -> Optional[str]:
    access_token = x_access_token or token
    if not access_token:
        return None
    user = await users.find_by_token(access_token)
    return user.username if user else None


@router.get(
    "/{type_name}/{content_hash}",
    summary="Read a document",
    description="Plaintext read of a catalogued document. Encrypted types need POST .../read.",
    responses=_ERRORS,
)
async def read_document(
    type_name: str,
    content_hash: str,
    x_access_token: Optional[str] = Header(None),
    token: Optional[str] = Query(None),
    service: DocumentService = Depends(get_document_service),
    users: UserDirectory = Depends(get_user_directory),
):
    username = await _optional_username(users, x_access_token, token)
    result = await service.read_document(type_name, content_hash, username)
    if not result.ok:
        return failure_response(result)
    return JSONResponse(content=result.value)


@router.post(
    "/{type_name}/{content_hash}/read",
    summary="Read a document with secrets",
    responses=_ERRORS,
)
async def read_document_with_secrets(
    type_name: str,
    content_hash: str,
    body: SecretsRequest,
    username: str = Depends(get_current_username),
    service: DocumentService = Depends(get_document_service),
):
    result = await service.read_document(
        type_name, content_hash, username, secrets=body.to_secrets()
    )
    if not result.ok:
        return failure_response(result)
    return JSONResponse(content=result.value)


@router.post(
    "/{type_name}",
    response_model=DocumentWriteResponse,
    summary="Create a document",
    responses={**_ERRORS, 409: {"model": ErrorResponse, "description": "Document already exists"}},
)
async def create_document(
    type_name: str,
    body: DocumentWriteRequest,
    username: str = Depends(get_current_username),
    service: DocumentService = Depends(get_document_service),
):
    result = await service.create_document(
        type_name, body.data, username, secrets=body.to_secrets()
    )
    if not result.ok:
        return failure_response(result)
    return DocumentWriteResponse(success="Document created", **result.value)


@router.put(
    "/{type_name}/{content_hash}",
    response_model=DocumentWriteResponse,
    summary="Update a document",
    responses={**_ERRORS, 409: {"model": ErrorResponse, "description": "Document already exists"}},
)
async def update_document(
    type_name: str,
    content_hash: str,
    body: DocumentWriteRequest,
    username: str = Depends(get_current_username),
    service: DocumentService = Depends(get_document_service),
):
    result = await service.update_document(
        type_name, content_hash, body.data, username, secrets=body.to_secrets()
    )
    if not result.ok:
        return failure_response(result)
    return DocumentWriteResponse(success="Document updated", **result.value)


@router.delete(
    "/{type_name}/{content_hash}",
    response_model=DocumentWriteResponse,
    summary="Remove a document from its type catalog",
    description="The stored object stays retrievable by hash.",
    responses=_ERRORS,
)
async def delete_document(
    type_name: str,
    content_hash: str,
    username: str = Depends(get_current_username),
    service: DocumentService = Depends(get_document_service),
):
    result = await service.delete_document(type_name, content_hash, username)
    if not result.ok:
        return failure_response(result)
    return DocumentWriteResponse(success="Document removed from type index", **result.value)
