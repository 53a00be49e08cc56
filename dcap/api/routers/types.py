"""Type, catalog and raw object endpoints."""

import json
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from dcap.api.dependencies import get_document_service
from dcap.api.error_handlers import failure_response
from dcap.api.schemas import CatalogResponse, ErrorResponse, TypeListResponse
from dcap.domain.document_service import DocumentService


router = APIRouter(tags=["types"])


@router.get(
    "/types",
    response_model=TypeListResponse,
    summary="List types",
)
async def list_types(
    service: DocumentService = Depends(get_document_service),
):
    result = await service.list_types()
    if not result.ok:
        return failure_response(result)
    return TypeListResponse(types=result.value, total=len(result.value))


@router.get(
    "/type/{type_name}",
    response_model=CatalogResponse,
    summary="Get type catalog",
    description="Returns the type's catalog entries and the hash of the catalog version.",
    responses={404: {"model": ErrorResponse, "description": "Type not found"}},
)
async def get_type(
    type_name: str,
    owner: Optional[str] = Query(None, description="Only entries owned by this user"),
    service: DocumentService = Depends(get_document_service),
):
    result = await service.get_type(type_name, owner=owner)
    if not result.ok:
        return failure_response(result)
    return result.value


@router.get(
    "/type/{type_name}/schema",
    summary="Get type schema",
    responses={404: {"model": ErrorResponse, "description": "Type not found"}},
)
async def get_type_schema(
    type_name: str,
    service: DocumentService = Depends(get_document_service),
):
    result = await service.get_type_schema(type_name)
    if not result.ok:
        return failure_response(result)
    return result.value


@router.get(
    "/object/{content_hash}",
    summary="Get stored object by hash",
    description="JSON objects are returned as JSON; anything else (ciphertext) as octet-stream.",
    responses={404: {"model": ErrorResponse, "description": "Object not found"}},
)
async def get_object(
    content_hash: str,
    service: DocumentService = Depends(get_document_service),
):
    result = await service.get_object(content_hash)
    if not result.ok:
        return failure_response(result)

    content: bytes = result.value
    try:
        json.loads(content.decode("utf-8"))
    except ValueError:
        return Response(content=content, media_type="application/octet-stream")
    return Response(content=content, media_type="application/json")
