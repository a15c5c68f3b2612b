"""Resource routes for one resource kind.

Implements, under ``/api/<kind>``:
  POST   /       create (201, resource)
  GET    /{id}   read; may complete a pending resource (200, resource)
  DELETE /{id}   delete a completed resource (200, "deleted")
  GET    /       list, for listable kinds only (200, [resource])

Every route requires the shared-secret Authorization header. Rate limiting
runs earlier, in middleware.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field, StrictStr, create_model

from ..auth import require_api_token
from ..errors import ValidationFailed
from ..kinds import ResourceKind
from ..models import ResourceStatus
from ..observability.logging import get_logger
from ..sanitize import strip_markup, validate_name
from ..store import ResourceStore

logger = get_logger(__name__)


class NewResourceRequest(BaseModel):
    """Request body for a new resource."""

    name: StrictStr = Field(..., examples=["my new thing"])


class ErrorBody(BaseModel):
    msg: str


def _resource_schema(kind: ResourceKind) -> type[BaseModel]:
    fields: dict[str, Any] = {
        "id": (str, ...),
        "name": (str, ...),
        "status": (ResourceStatus, ...),
        "created_at": (datetime, ...),
        "updated_at": (datetime, ...),
        kind.payload_field: (int, ...),
    }
    return create_model(kind.name.capitalize(), **fields)


def _parse_name(raw_body: bytes, kind: ResourceKind) -> str:
    """Parse and validate a create body, returning the sanitized name.

    Unparseable bodies and rule violations both surface as ValidationFailed;
    the cause is only logged.
    """
    try:
        name = NewResourceRequest.model_validate_json(raw_body).name
        validate_name(name, kind)
    except ValueError as exc:
        # pydantic (including malformed JSON) and name-rule errors are ValueErrors.
        logger.info("invalid_create_request", kind=kind.name, error=str(exc))
        raise ValidationFailed() from exc
    return strip_markup(name)


def create_resource_router(kind: ResourceKind, store: ResourceStore) -> APIRouter:
    """Create the router serving ``kind`` from ``store``."""
    router = APIRouter(
        prefix=kind.base_path,
        tags=[kind.name],
        dependencies=[Depends(require_api_token)],
    )
    schema = _resource_schema(kind)
    common_errors: dict[int | str, dict[str, Any]] = {
        401: {"model": ErrorBody, "description": "Missing or invalid authorization token"},
        429: {"model": ErrorBody, "description": "Too many requests"},
    }

    @router.post("", status_code=201, include_in_schema=False)
    @router.post(
        "/",
        status_code=201,
        summary=f"create a new {kind.name}",
        responses={
            201: {"model": schema},
            400: {"model": ErrorBody, "description": "The input object failed validation"},
            **common_errors,
        },
        openapi_extra={
            "requestBody": {
                "required": True,
                "content": {
                    "application/json": {"schema": NewResourceRequest.model_json_schema()},
                },
            },
        },
    )
    async def create_resource(request: Request) -> JSONResponse:
        name = _parse_name(await request.body(), kind)
        resource = store.create(name)
        return JSONResponse(
            status_code=201,
            content=resource.to_dict(kind.payload_field),
        )

    if kind.listable:

        @router.get("", include_in_schema=False)
        @router.get(
            "/",
            summary=f"list all {kind.name}s",
            responses={200: {"model": list[schema]}, **common_errors},
        )
        async def list_resources() -> JSONResponse:
            return JSONResponse(
                content=[r.to_dict(kind.payload_field) for r in store.list()],
            )

    @router.get(
        "/{resource_id}",
        summary=f"load a {kind.name}",
        responses={
            200: {"model": schema},
            404: {"model": ErrorBody, "description": f"This {kind.name} does not exist"},
            **common_errors,
        },
    )
    async def get_resource(resource_id: str) -> JSONResponse:
        resource = store.get(resource_id)
        return JSONResponse(content=resource.to_dict(kind.payload_field))

    @router.delete(
        "/{resource_id}",
        summary=f"delete a {kind.name}",
        response_class=PlainTextResponse,
        responses={
            200: {"description": f"The {kind.name} was successfully deleted"},
            400: {"model": ErrorBody, "description": f"The {kind.name} is still being created"},
            404: {"model": ErrorBody, "description": f"This {kind.name} does not exist"},
            **common_errors,
        },
    )
    async def delete_resource(resource_id: str) -> PlainTextResponse:
        store.delete(resource_id)
        return PlainTextResponse("deleted")

    return router
