"""Prometheus metrics for thing-api.

Usage::

    from thing_api.observability.metrics import RESOURCE_TRANSITIONS_TOTAL

    RESOURCE_TRANSITIONS_TOTAL.labels(kind="thing", status="created").inc()
"""

from __future__ import annotations

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# ---------------------------------------------------------------------------
# HTTP request metrics
# ---------------------------------------------------------------------------

HTTP_REQUESTS_TOTAL = Counter(
    "http_server_requests_total",
    "Total HTTP requests by method, path pattern, and status code.",
    labelnames=["method", "path", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_server_request_duration_seconds",
    "HTTP request latency in seconds.",
    labelnames=["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=REGISTRY,
)

HTTP_REQUESTS_IN_FLIGHT = Gauge(
    "http_server_requests_in_flight",
    "Number of HTTP requests currently being processed.",
    registry=REGISTRY,
)

# ---------------------------------------------------------------------------
# Resource lifecycle metrics
# ---------------------------------------------------------------------------

RESOURCES_CREATED_TOTAL = Counter(
    "resources_created_total",
    "Resources created, by kind.",
    labelnames=["kind"],
    registry=REGISTRY,
)

RESOURCE_TRANSITIONS_TOTAL = Counter(
    "resource_transitions_total",
    "Pending resources that reached a terminal status, by kind and status.",
    labelnames=["kind", "status"],
    registry=REGISTRY,
)

RATE_LIMIT_REJECTIONS_TOTAL = Counter(
    "rate_limit_rejections_total",
    "Requests rejected by the per-client rate limiter.",
    registry=REGISTRY,
)

RATE_LIMIT_TRACKED_CLIENTS = Gauge(
    "rate_limit_tracked_clients",
    "Client addresses currently held by the rate limiter.",
    registry=REGISTRY,
)


def render_latest() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
