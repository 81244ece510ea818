"""Pydantic schemas for codes and their audio attachments."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CodeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    token: str
    created_at: datetime


class CodeSummary(CodeRead):
    """A code plus whether any audio has been attached to it."""

    has_audio: bool = False


class CodeListResponse(BaseModel):
    total: int
    with_audio: int
    codes: list[CodeSummary]


class GenerateCodesRequest(BaseModel):
    count: int = Field(default=10, ge=1, le=500)


class GenerateCodesResponse(BaseModel):
    created: list[str]


class AttachmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code_id: int
    url: str
    uploader_email: str | None = None
    created_at: datetime


class CodeStateResponse(BaseModel):
    """Which view a code page should render."""

    token: str
    view: Literal["player", "uploader"]
    audio_url: str | None = None


__all__ = [
    "CodeRead",
    "CodeSummary",
    "CodeListResponse",
    "GenerateCodesRequest",
    "GenerateCodesResponse",
    "AttachmentRead",
    "CodeStateResponse",
]
