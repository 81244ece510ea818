"""Upload validation helpers (first stage of the audio pipeline)."""

from __future__ import annotations

import mimetypes
from typing import Final

from fastapi import UploadFile

from audio_memory.errors import TooLargeError, UnsupportedTypeError
from audio_memory.pipelines.audio.types import UploadCandidate

ACCEPTED_CONTENT_TYPES: Final[frozenset[str]] = frozenset(
    {
        "audio/mpeg",
        "audio/wav",
        "audio/x-m4a",
        "audio/mp4",
        "audio/webm",
    }
)
MAX_UPLOAD_BYTES: Final[int] = 10 * 1024 * 1024


def validate_candidate(candidate: UploadCandidate) -> None:
    """Reject payloads with an unsupported media type or above the size ceiling."""

    if candidate.content_type not in ACCEPTED_CONTENT_TYPES:
        raise UnsupportedTypeError()
    if candidate.size > MAX_UPLOAD_BYTES:
        raise TooLargeError()


def resolve_content_type(audio_file: UploadFile) -> str | None:
    """Use the declared content-type, falling back to a guess from the filename."""

    content_type = audio_file.content_type
    if content_type == "application/octet-stream":
        content_type = None
    if not content_type and audio_file.filename:
        content_type, _ = mimetypes.guess_type(audio_file.filename)
    return content_type


async def read_candidate(audio_file: UploadFile) -> UploadCandidate:
    """Load at most one byte past the ceiling so oversize uploads still fail validation."""

    data = await audio_file.read(MAX_UPLOAD_BYTES + 1)
    await audio_file.close()
    return UploadCandidate.from_file(
        data,
        resolve_content_type(audio_file),
        audio_file.filename,
    )


__all__ = [
    "ACCEPTED_CONTENT_TYPES",
    "MAX_UPLOAD_BYTES",
    "validate_candidate",
    "resolve_content_type",
    "read_candidate",
]
