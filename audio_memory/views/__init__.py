"""Pydantic schemas used as views in the MVC architecture."""

from .auth import CurrentUser, MagicLinkRequest, MagicLinkResponse, MeResponse
from .codes import (
    AttachmentRead,
    CodeListResponse,
    CodeRead,
    CodeStateResponse,
    CodeSummary,
    GenerateCodesRequest,
    GenerateCodesResponse,
)
from .common import ErrorResponse, SuccessResponse
from .recording import RecordingCommand, RecordingEvent

__all__ = [
    "CurrentUser",
    "MagicLinkRequest",
    "MagicLinkResponse",
    "MeResponse",
    "AttachmentRead",
    "CodeListResponse",
    "CodeRead",
    "CodeStateResponse",
    "CodeSummary",
    "GenerateCodesRequest",
    "GenerateCodesResponse",
    "RecordingCommand",
    "RecordingEvent",
    "ErrorResponse",
    "SuccessResponse",
]
