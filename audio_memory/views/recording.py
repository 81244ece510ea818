"""Messages exchanged over the live recording WebSocket."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class RecordingCommand(BaseModel):
    """JSON text frame sent by the browser."""

    action: Literal["start", "stop", "discard", "save"]
    permission: Literal["granted", "denied"] | None = None


class RecordingEvent(BaseModel):
    """JSON frame pushed to the browser."""

    type: Literal["state", "tick", "saved", "error"]
    state: str
    elapsed: int = 0
    display: str = "0:00"
    preview_url: str | None = None
    attachment_url: str | None = None
    detail: str | None = None
    code: str | None = None


__all__ = ["RecordingCommand", "RecordingEvent"]
