"""Error hierarchy for the resource API.

Every error carries the HTTP status and the client-safe message it maps to.
The app factory registers handlers that render them as ``{"msg": ...}``;
underlying causes are logged server-side only.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .observability.logging import get_logger

logger = get_logger(__name__)


class ResourceAPIError(Exception):
    """Base error converted to a JSON error body at the request boundary."""

    status_code: int = 500
    message: str = "internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def headers(self) -> dict[str, str] | None:
        return None


class Unauthorized(ResourceAPIError):
    """Missing or mismatched shared-secret credential."""

    status_code = 401
    message = "missing or invalid authorization token"

    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": 'Token realm="thing-api"'}


class RateLimited(ResourceAPIError):
    """Per-client request quota exceeded."""

    status_code = 429
    message = "too many requests"

    def __init__(self, key: str, retry_after: float) -> None:
        self.key = key
        self.retry_after = retry_after
        super().__init__()

    def headers(self) -> dict[str, str] | None:
        # Retry-After is whole seconds; never advertise 0.
        return {"Retry-After": str(max(1, int(self.retry_after + 0.999)))}


class ValidationFailed(ResourceAPIError):
    """Malformed or constraint-violating create payload."""

    status_code = 400
    message = "invalid input"


class ResourceNotFound(ResourceAPIError):
    status_code = 404
    message = "not found"

    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__()


class InvalidResourceState(ResourceAPIError):
    """Delete attempted on a resource that is still pending."""

    status_code = 400

    def __init__(self, kind: str, resource_id: str) -> None:
        self.kind = kind
        self.resource_id = resource_id
        super().__init__(f"cannot delete {kind}s in creating state")


def error_response(exc: ResourceAPIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"msg": exc.message},
        headers=exc.headers(),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install handlers turning errors into structured JSON responses."""

    @app.exception_handler(ResourceAPIError)
    async def _resource_api_error(request: Request, exc: ResourceAPIError) -> JSONResponse:
        return error_response(exc)

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_error",
            method=request.method,
            path=request.url.path,
            error_type=type(exc).__name__,
        )
        return JSONResponse(status_code=500, content={"msg": "internal server error"})
