"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

SIGN_IN_LINK_COUNTER = Counter(
    "app_sign_in_links_total",
    "Number of magic links delivered",
)

UPLOAD_COUNTER = Counter(
    "app_audio_uploads_total",
    "Audio persistence attempts by source and outcome",
    ("source", "outcome"),
)

CODES_CREATED_COUNTER = Counter(
    "app_codes_created_total",
    "Number of codes generated by administrators",
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    status_label = str(status_code)
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=status_label,
    ).inc()
    REQUEST_LATENCY.labels(
        method=safe_method,
        route=safe_route,
    ).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(
            method=safe_method,
            route=safe_route,
        ).inc()


def increment_sign_in_link() -> None:
    SIGN_IN_LINK_COUNTER.inc()


def observe_upload(source: str, outcome: str) -> None:
    UPLOAD_COUNTER.labels(source=source, outcome=outcome).inc()


def increment_codes_created(count: int) -> None:
    CODES_CREATED_COUNTER.inc(count)
