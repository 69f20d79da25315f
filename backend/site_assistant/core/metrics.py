"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "sitea_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "sitea_request_latency_seconds",
    "Latency of HTTP requests",
    labelnames=("endpoint",),
    registry=REGISTRY,
)

BUILD_DURATION = Histogram(
    "sitea_build_duration_seconds",
    "Full index rebuild duration",
    registry=REGISTRY,
)

INDEX_SIZE = Gauge(
    "sitea_index_chunks",
    "Number of chunks stored in the live index",
    registry=REGISTRY,
)

FALLBACKS = Counter(
    "sitea_backend_fallbacks_total",
    "Times a request moved past its first backend candidate",
    labelnames=("kind",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "BUILD_DURATION",
    "INDEX_SIZE",
    "FALLBACKS",
    "metrics_response",
]
