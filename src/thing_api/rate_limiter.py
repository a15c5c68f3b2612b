"""Per-client rate limiting.

A thread-safe sliding-window counter keyed by client address, and the
middleware that applies it to every ``/api/`` request before
authentication or routing. A request rejected here never reaches the
token check or the store; a request that later fails authentication has
still consumed its slot.
"""
from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from .errors import RateLimited, error_response
from .observability.logging import get_logger
from .observability.metrics import RATE_LIMIT_REJECTIONS_TOTAL, RATE_LIMIT_TRACKED_CLIENTS

logger = get_logger(__name__)

# Drop idle keys after this many checks so the key space stays bounded.
_SWEEP_INTERVAL = 1024


@dataclass(frozen=True)
class RateLimitConfig:
    """Configuration for a single rate limit."""
    max_requests: int
    window_seconds: float
    description: str = ''


DEFAULT_CLIENT_LIMIT = RateLimitConfig(
    max_requests=1, window_seconds=1.0,
    description='Per-client API requests',
)


class SlidingWindowCounter:
    """Thread-safe sliding window rate limiter.

    Tracks request timestamps per key and rejects requests that
    exceed the configured rate within the window.
    """

    def __init__(self, config: RateLimitConfig = DEFAULT_CLIENT_LIMIT):
        self.config = config
        self._windows: dict[str, list[float]] = defaultdict(list)
        self._lock = Lock()
        self._checks = 0

    def check(self, key: str, now: float | None = None) -> None:
        """Admit one request for ``key``. Raises RateLimited if not allowed."""
        now = now if now is not None else time.time()
        cutoff = now - self.config.window_seconds

        with self._lock:
            self._checks += 1
            if self._checks % _SWEEP_INTERVAL == 0:
                self._sweep(cutoff)

            timestamps = self._windows[key]
            timestamps[:] = [t for t in timestamps if t > cutoff]

            if len(timestamps) >= self.config.max_requests:
                oldest = timestamps[0] if timestamps else cutoff
                retry_after = oldest + self.config.window_seconds - now
                raise RateLimited(key, max(retry_after, 0.1))

            timestamps.append(now)

    def tracked_keys(self) -> int:
        """Number of client keys currently held in memory."""
        with self._lock:
            return len(self._windows)

    def _sweep(self, cutoff: float) -> None:
        # Caller holds the lock.
        idle = [k for k, ts in self._windows.items() if not ts or ts[-1] <= cutoff]
        for key in idle:
            del self._windows[key]


def client_key(request: Request) -> str:
    return request.client.host if request.client else 'unknown'


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over the per-client quota with 429."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        limiter: SlidingWindowCounter,
        clock: Callable[[], float] = time.time,
        path_prefix: str = '/api/',
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.clock = clock
        self.path_prefix = path_prefix

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        key = client_key(request)
        try:
            self.limiter.check(key, now=self.clock())
        except RateLimited as exc:
            RATE_LIMIT_REJECTIONS_TOTAL.inc()
            logger.info(
                'rate_limited',
                client=key,
                path=request.url.path,
                retry_after=round(exc.retry_after, 3),
            )
            return error_response(exc)
        finally:
            RATE_LIMIT_TRACKED_CLIENTS.set(self.limiter.tracked_keys())

        return await call_next(request)
