"""Shared-secret authentication for the resource routes.

Every ``/api/<kind>`` route depends on ``require_api_token``. The
Authorization header must equal the configured secret exactly; the
comparison is constant-time.
"""

from __future__ import annotations

import hmac

from fastapi import Request

from .errors import Unauthorized
from .observability.logging import get_logger

logger = get_logger(__name__)


def token_matches(presented: str | None, expected: str) -> bool:
    if not presented or not expected:
        return False
    return hmac.compare_digest(presented.encode(), expected.encode())


async def require_api_token(request: Request) -> None:
    """FastAPI dependency rejecting requests without the shared secret."""
    settings = request.app.state.settings
    if not token_matches(request.headers.get("authorization"), settings.api_token):
        logger.info("auth_rejected", path=request.url.path)
        raise Unauthorized()
