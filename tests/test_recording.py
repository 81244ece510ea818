"""Recording session lifecycle driven with a manual timer and a client microphone."""

from __future__ import annotations

from datetime import datetime

import pytest

from audio_memory.errors import (
    CapabilityDeniedError,
    InvalidTransitionError,
    StorageWriteFailedError,
)
from audio_memory.pipelines.audio import (
    ClientMicrophone,
    RecordingController,
    RecordingState,
)
from audio_memory.services.previews import PreviewRegistry
from audio_memory.views import AttachmentRead


class ManualTimer:
    def __init__(self, callback) -> None:
        self.callback = callback
        self.cancelled = False

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            self.callback()

    def cancel(self) -> None:
        self.cancelled = True


class FakeUploader:
    def __init__(self) -> None:
        self.calls = []
        self.error: Exception | None = None

    async def persist(self, candidate, code_id, uploader_email, *, source="file"):
        self.calls.append((candidate, code_id, uploader_email, source))
        if self.error is not None:
            raise self.error
        return AttachmentRead(
            id=1,
            code_id=code_id,
            url="https://cdn.example.com/1-1.webm",
            uploader_email=uploader_email,
            created_at=datetime(2024, 1, 1),
        )


@pytest.fixture
def timers() -> list[ManualTimer]:
    return []


@pytest.fixture
def microphone() -> ClientMicrophone:
    mic = ClientMicrophone()
    mic.report_permission(True)
    return mic


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
def previews() -> PreviewRegistry:
    return PreviewRegistry()


@pytest.fixture
def ticks() -> list[int]:
    return []


@pytest.fixture
def session(microphone, uploader, previews, timers, ticks) -> RecordingController:
    def timer_factory(callback):
        timer = ManualTimer(callback)
        timers.append(timer)
        return timer

    return RecordingController(
        microphone,
        uploader,
        previews,
        code_id=5,
        uploader_email="visitor@example.com",
        timer_factory=timer_factory,
        on_tick=ticks.append,
    )


async def test_denied_microphone_stays_idle(session, microphone):
    microphone.report_permission(False)

    with pytest.raises(CapabilityDeniedError):
        await session.start()

    assert session.state is RecordingState.IDLE
    assert session.error == "Microphone access denied. Please allow microphone access."


async def test_stop_without_chunks_yields_empty_payload(session, previews):
    await session.start()
    preview = await session.stop()

    assert session.state is RecordingState.REVIEWING
    assert session.payload.size == 0
    assert session.payload.content_type == "audio/webm"
    assert session.payload.extension == "webm"
    assert preview in previews


async def test_chunks_are_joined_in_order(session, microphone, timers):
    await session.start()
    microphone.push(b"ab")
    microphone.push(b"cd")
    await session.stop()
    microphone.push(b"late")

    assert session.payload.data == b"abcd"
    assert timers[0].cancelled
    assert microphone.feed.listener_count == 0


async def test_timer_counts_seconds_while_recording(session, timers, ticks):
    await session.start()
    timers[0].fire(3)

    assert session.elapsed == 3
    assert session.elapsed_display == "0:03"
    assert ticks == [1, 2, 3]

    await session.stop()
    timers[0].fire()

    assert session.elapsed == 3


async def test_discard_resets_everything(session, timers, previews, uploader):
    await session.start()
    timers[0].fire(3)
    await session.stop()

    session.discard()

    assert session.state is RecordingState.IDLE
    assert session.elapsed == 0
    assert session.elapsed_display == "0:00"
    assert session.payload is None
    assert session.preview is None
    assert len(previews) == 0
    assert uploader.calls == []


async def test_save_hands_payload_to_uploader(session, microphone, previews, uploader):
    await session.start()
    microphone.push(b"audio")
    await session.stop()

    attachment = await session.save()

    candidate, code_id, email, source = uploader.calls[0]
    assert candidate.data == b"audio"
    assert (code_id, email, source) == (5, "visitor@example.com", "recording")
    assert attachment.url.endswith(".webm")
    assert session.state is RecordingState.IDLE
    assert len(previews) == 0


async def test_saving_hook_sees_uploading_state(microphone, uploader, previews):
    seen = []
    session = RecordingController(
        microphone,
        uploader,
        previews,
        code_id=5,
        uploader_email=None,
        timer_factory=ManualTimer,
        on_saving=lambda: seen.append(session.state),
    )
    await session.start()
    await session.stop()

    await session.save()

    assert seen == [RecordingState.UPLOADING]
    assert session.state is RecordingState.IDLE


async def test_failed_save_returns_to_review(session, previews, uploader):
    await session.start()
    await session.stop()
    preview = session.preview
    uploader.error = StorageWriteFailedError()

    with pytest.raises(StorageWriteFailedError):
        await session.save()

    assert session.state is RecordingState.REVIEWING
    assert session.error == "Upload failed."
    assert preview in previews
    assert session.payload is not None

    uploader.error = None
    await session.save()

    assert session.state is RecordingState.IDLE
    assert session.error is None


async def test_invalid_transitions_leave_state_untouched(session):
    with pytest.raises(InvalidTransitionError):
        await session.stop()
    with pytest.raises(InvalidTransitionError):
        session.discard()
    with pytest.raises(InvalidTransitionError):
        await session.save()
    assert session.state is RecordingState.IDLE

    await session.start()
    with pytest.raises(InvalidTransitionError):
        await session.start()
    with pytest.raises(InvalidTransitionError):
        await session.save()
    assert session.state is RecordingState.RECORDING


async def test_close_releases_capture_and_preview(session, microphone, timers, previews):
    await session.start()
    await session.close()

    assert timers[0].cancelled
    assert microphone.feed.closed
    assert microphone.feed.listener_count == 0
    assert session.state is RecordingState.IDLE

    await session.start()
    await session.stop()
    await session.close()

    assert len(previews) == 0
