"""Telemetry helpers and metrics."""

from .metrics import (
    CODES_CREATED_COUNTER,
    ERROR_COUNTER,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    SIGN_IN_LINK_COUNTER,
    UPLOAD_COUNTER,
    increment_codes_created,
    increment_sign_in_link,
    observe_request,
    observe_upload,
)

__all__ = [
    "CODES_CREATED_COUNTER",
    "ERROR_COUNTER",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SIGN_IN_LINK_COUNTER",
    "UPLOAD_COUNTER",
    "increment_codes_created",
    "increment_sign_in_link",
    "observe_request",
    "observe_upload",
]
