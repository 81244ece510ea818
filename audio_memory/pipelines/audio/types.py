"""Typed containers and collaborator protocols shared by the audio pipeline.

These live in their own module so the ingestion, upload, recording and
playback stages can import them without creating circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol

DEFAULT_EXTENSION = "mp3"


def extension_from_filename(filename: str | None) -> str | None:
    """Return the lower-cased suffix of ``filename`` without the dot."""

    if not filename or "." not in filename:
        return None
    suffix = filename.rsplit(".", 1)[1].strip().lower()
    return suffix or None


@dataclass(frozen=True)
class UploadCandidate:
    """Audio payload pending validation and persistence."""

    data: bytes
    content_type: str | None
    extension: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_file(
        cls,
        data: bytes,
        content_type: str | None,
        filename: str | None,
    ) -> "UploadCandidate":
        return cls(
            data=data,
            content_type=content_type,
            extension=extension_from_filename(filename),
        )


class RecordingState(str, Enum):
    """Lifecycle states of a recording session."""

    IDLE = "idle"
    RECORDING = "recording"
    REVIEWING = "reviewing"
    UPLOADING = "uploading"


ChunkListener = Callable[[bytes], None]


class CaptureStream(Protocol):
    """Live capture handle that delivers encoded audio chunks to listeners."""

    def subscribe(self, listener: ChunkListener) -> None:
        ...

    def unsubscribe(self, listener: ChunkListener) -> None:
        ...

    async def stop(self) -> None:
        ...


class MicrophoneSource(Protocol):
    """Grants (or refuses) access to a microphone."""

    async def open(self) -> CaptureStream:
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


TimerFactory = Callable[[Callable[[], None]], TimerHandle]


class PreviewStore(Protocol):
    """Issues locally playable references to finalized recordings."""

    def register(self, payload: UploadCandidate) -> Any:
        ...

    def release(self, reference: Any) -> None:
        ...


TransportListener = Callable[[], None]


class AudioTransport(Protocol):
    """Subset of an HTML audio element that the player drives."""

    src: str
    current_time: float
    volume: float
    muted: bool

    @property
    def duration(self) -> float:
        ...

    def play(self) -> Awaitable[None]:
        ...

    def pause(self) -> None:
        ...

    def add_listener(self, event: str, listener: TransportListener) -> None:
        ...

    def remove_listener(self, event: str, listener: TransportListener) -> None:
        ...


__all__ = [
    "DEFAULT_EXTENSION",
    "extension_from_filename",
    "UploadCandidate",
    "RecordingState",
    "ChunkListener",
    "CaptureStream",
    "MicrophoneSource",
    "TimerHandle",
    "TimerFactory",
    "PreviewStore",
    "TransportListener",
    "AudioTransport",
]
