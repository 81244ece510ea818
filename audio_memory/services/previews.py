"""In-memory previews of finalized recordings awaiting save or discard."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import uuid4

from audio_memory.pipelines.audio.types import UploadCandidate

logger = logging.getLogger(__name__)

PREVIEW_ROUTE_PREFIX = "/recordings/previews"


@dataclass(frozen=True)
class PreviewReference:
    """Locally playable handle to a finalized recording."""

    id: str
    url: str


class PreviewRegistry:
    """Holds finalized recordings until their owner releases them."""

    def __init__(self, route_prefix: str = PREVIEW_ROUTE_PREFIX) -> None:
        self.route_prefix = route_prefix.rstrip("/")
        self._entries: dict[str, UploadCandidate] = {}

    def register(self, payload: UploadCandidate) -> PreviewReference:
        preview_id = uuid4().hex
        self._entries[preview_id] = payload
        logger.debug("Registered preview %s (%d bytes)", preview_id, payload.size)
        return PreviewReference(id=preview_id, url=f"{self.route_prefix}/{preview_id}")

    def release(self, reference: PreviewReference) -> None:
        if self._entries.pop(reference.id, None) is not None:
            logger.debug("Released preview %s", reference.id)

    def get(self, preview_id: str) -> UploadCandidate | None:
        return self._entries.get(preview_id)

    def __contains__(self, reference: object) -> bool:
        return isinstance(reference, PreviewReference) and reference.id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["PREVIEW_ROUTE_PREFIX", "PreviewReference", "PreviewRegistry"]
