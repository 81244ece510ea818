"""Microphone sources for recordings whose audio is captured by a remote client."""

from __future__ import annotations

import logging

from audio_memory.errors import CapabilityDeniedError
from audio_memory.pipelines.audio.types import ChunkListener

logger = logging.getLogger(__name__)


class ChunkFeed:
    """Capture stream that forwards pushed chunks to its subscribers."""

    def __init__(self) -> None:
        self._listeners: list[ChunkListener] = []
        self.closed = False

    def subscribe(self, listener: ChunkListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChunkListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def push(self, chunk: bytes) -> None:
        if self.closed:
            logger.debug("Dropping %d byte chunk after stop", len(chunk))
            return
        for listener in list(self._listeners):
            listener(chunk)

    async def stop(self) -> None:
        self.closed = True

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class ClientMicrophone:
    """Microphone owned by a browser.

    The client asks its user for permission first and reports the outcome;
    ``open`` then either grants a fresh feed or refuses.
    """

    def __init__(self) -> None:
        self._granted = False
        self.feed: ChunkFeed | None = None

    def report_permission(self, granted: bool) -> None:
        self._granted = granted

    async def open(self) -> ChunkFeed:
        if not self._granted:
            raise CapabilityDeniedError()
        self.feed = ChunkFeed()
        return self.feed

    def push(self, chunk: bytes) -> None:
        if self.feed is None:
            logger.debug("Dropping %d byte chunk with no open feed", len(chunk))
            return
        self.feed.push(chunk)


__all__ = ["ChunkFeed", "ClientMicrophone"]
