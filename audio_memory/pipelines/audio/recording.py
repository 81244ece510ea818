"""Live recording sessions.

A session moves through ``idle -> recording -> reviewing`` and from there
either back to ``idle`` (discard) or through ``uploading`` to ``idle`` (save).
A failed save lands in ``reviewing`` again with the preview still available.
Calling an operation from any other state raises ``InvalidTransitionError``
and leaves the session untouched.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from audio_memory.errors import (
    AudioMemoryError,
    CapabilityDeniedError,
    InvalidTransitionError,
)
from audio_memory.pipelines.audio.clock import format_clock
from audio_memory.pipelines.audio.types import (
    CaptureStream,
    MicrophoneSource,
    PreviewStore,
    RecordingState,
    TimerFactory,
    TimerHandle,
    UploadCandidate,
)
from audio_memory.pipelines.audio.upload import UploadController
from audio_memory.views import AttachmentRead

logger = logging.getLogger(__name__)

RECORDING_CONTENT_TYPE = "audio/webm"
RECORDING_EXTENSION = "webm"


class IntervalTimer:
    """Calls ``callback`` every ``interval`` seconds on the running loop until cancelled."""

    def __init__(self, callback: Callable[[], None], interval: float = 1.0) -> None:
        self._loop = asyncio.get_running_loop()
        self._callback = callback
        self._interval = interval
        self._handle: Optional[asyncio.TimerHandle] = self._loop.call_later(
            interval, self._fire
        )

    def _fire(self) -> None:
        self._handle = self._loop.call_later(self._interval, self._fire)
        self._callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class RecordingController:
    """Owns one capture session for one code on behalf of one uploader."""

    def __init__(
        self,
        microphone: MicrophoneSource,
        uploader: UploadController,
        previews: PreviewStore,
        *,
        code_id: int,
        uploader_email: str | None,
        timer_factory: TimerFactory = IntervalTimer,
        on_tick: Callable[[int], None] | None = None,
        on_saving: Callable[[], None] | None = None,
    ) -> None:
        self._microphone = microphone
        self._uploader = uploader
        self._previews = previews
        self._code_id = code_id
        self._uploader_email = uploader_email
        self._timer_factory = timer_factory
        self._on_tick = on_tick
        self._on_saving = on_saving

        self.state = RecordingState.IDLE
        self.elapsed = 0
        self.error: str | None = None
        self.payload: UploadCandidate | None = None
        self.preview: Any | None = None

        self._chunks: list[bytes] = []
        self._stream: CaptureStream | None = None
        self._timer: TimerHandle | None = None

    @property
    def elapsed_display(self) -> str:
        return format_clock(self.elapsed)

    def _require(self, action: str, *allowed: RecordingState) -> None:
        if self.state not in allowed:
            raise InvalidTransitionError(
                f"Cannot {action} while {self.state.value}."
            )

    async def start(self) -> None:
        self._require("start recording", RecordingState.IDLE)
        self.error = None

        try:
            stream = await self._microphone.open()
        except CapabilityDeniedError as exc:
            self.state = RecordingState.IDLE
            self.error = exc.detail
            logger.info("Microphone denied code_id=%s", self._code_id)
            raise

        self._chunks = []
        self.elapsed = 0
        self._stream = stream
        stream.subscribe(self._collect_chunk)
        self._timer = self._timer_factory(self._tick)
        self.state = RecordingState.RECORDING
        logger.info("Recording started code_id=%s", self._code_id)

    async def stop(self) -> Any:
        """Finish capture and expose a preview of the assembled recording."""

        self._require("stop", RecordingState.RECORDING)
        await self._release_capture()

        self.payload = UploadCandidate(
            data=b"".join(self._chunks),
            content_type=RECORDING_CONTENT_TYPE,
            extension=RECORDING_EXTENSION,
        )
        self._chunks = []
        self.preview = self._previews.register(self.payload)
        self.state = RecordingState.REVIEWING
        logger.info(
            "Recording stopped code_id=%s seconds=%d bytes=%d",
            self._code_id,
            self.elapsed,
            self.payload.size,
        )
        return self.preview

    def discard(self) -> None:
        self._require("discard", RecordingState.REVIEWING)
        self._release_preview()
        self.payload = None
        self.elapsed = 0
        self.error = None
        self.state = RecordingState.IDLE
        logger.info("Recording discarded code_id=%s", self._code_id)

    async def save(self) -> AttachmentRead:
        self._require("save", RecordingState.REVIEWING)
        payload = self.payload
        self.state = RecordingState.UPLOADING
        self.error = None
        if self._on_saving is not None:
            self._on_saving()
        try:
            attachment = await self._uploader.persist(
                payload,
                self._code_id,
                self._uploader_email,
                source="recording",
            )
        except Exception as exc:
            self.state = RecordingState.REVIEWING
            self.error = exc.detail if isinstance(exc, AudioMemoryError) else "Upload failed."
            raise

        self.payload = None
        self._release_preview()
        self.elapsed = 0
        self.state = RecordingState.IDLE
        return attachment

    async def close(self) -> None:
        """Release capture, timer and preview from whatever state the session is in."""

        await self._release_capture()
        self._release_preview()
        self._chunks = []
        self.payload = None
        self.state = RecordingState.IDLE

    def _collect_chunk(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.append(chunk)

    def _tick(self) -> None:
        if self.state is not RecordingState.RECORDING:
            return
        self.elapsed += 1
        if self._on_tick is not None:
            self._on_tick(self.elapsed)

    async def _release_capture(self) -> None:
        timer, self._timer = self._timer, None
        stream, self._stream = self._stream, None
        if timer is not None:
            timer.cancel()
        if stream is not None:
            try:
                await stream.stop()
            finally:
                stream.unsubscribe(self._collect_chunk)

    def _release_preview(self) -> None:
        preview, self.preview = self.preview, None
        if preview is not None:
            self._previews.release(preview)


__all__ = [
    "IntervalTimer",
    "RecordingController",
    "RECORDING_CONTENT_TYPE",
    "RECORDING_EXTENSION",
]
