"""Validation and two-step persistence of audio payloads."""

from __future__ import annotations

import io
from datetime import datetime

import pytest
from starlette.datastructures import Headers, UploadFile

from audio_memory.errors import (
    AlreadyAttachedError,
    RecordCreateFailedError,
    StorageWriteFailedError,
    TooLargeError,
    UnsupportedTypeError,
)
from audio_memory.pipelines.audio import (
    MAX_UPLOAD_BYTES,
    UploadCandidate,
    UploadController,
    read_candidate,
    resolve_content_type,
    validate_candidate,
)
from audio_memory.views import AttachmentRead


class FakeAttachmentWriter:
    def __init__(self, fail: bool = False) -> None:
        self.rows: list[AttachmentRead] = []
        self.fail = fail

    async def get_attachment_for_code(self, code_id):
        return next((row for row in self.rows if row.code_id == code_id), None)

    async def insert_attachment(self, code_id, url, uploader_email):
        if self.fail:
            raise RecordCreateFailedError("database unavailable")
        row = AttachmentRead(
            id=len(self.rows) + 1,
            code_id=code_id,
            url=url,
            uploader_email=uploader_email,
            created_at=datetime(2024, 1, 1),
        )
        self.rows.append(row)
        return row


def _upload_file(data: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def test_validate_rejects_unlisted_type():
    with pytest.raises(UnsupportedTypeError):
        validate_candidate(UploadCandidate(b"abc", "text/plain"))


def test_validate_rejects_missing_type():
    with pytest.raises(UnsupportedTypeError):
        validate_candidate(UploadCandidate(b"abc", None))


def test_validate_size_ceiling_is_inclusive():
    validate_candidate(UploadCandidate(b"\0" * MAX_UPLOAD_BYTES, "audio/wav"))

    with pytest.raises(TooLargeError):
        validate_candidate(UploadCandidate(b"\0" * (MAX_UPLOAD_BYTES + 1), "audio/wav"))


def test_type_is_checked_before_size():
    with pytest.raises(UnsupportedTypeError):
        validate_candidate(UploadCandidate(b"\0" * (MAX_UPLOAD_BYTES + 1), "video/mp4"))


def test_resolve_content_type_guesses_from_filename():
    upload = _upload_file(b"abc", "memo.mp3", "application/octet-stream")

    assert resolve_content_type(upload) == "audio/mpeg"


async def test_read_candidate_keeps_extension_and_type():
    upload = _upload_file(b"abc", "Memo.M4A", "audio/x-m4a")

    candidate = await read_candidate(upload)

    assert candidate.data == b"abc"
    assert candidate.content_type == "audio/x-m4a"
    assert candidate.extension == "m4a"


async def test_submit_rejects_without_touching_storage(object_store):
    writer = FakeAttachmentWriter()
    controller = UploadController(object_store, writer)

    with pytest.raises(UnsupportedTypeError):
        await controller.submit(UploadCandidate(b"abc", "text/plain"), 1, "a@example.com")

    assert object_store.blobs == {}
    assert writer.rows == []


async def test_submit_stores_blob_then_row(object_store):
    writer = FakeAttachmentWriter()
    controller = UploadController(object_store, writer, clock=lambda: 1700000000.5)
    candidate = UploadCandidate(b"\1" * 2_000_000, "audio/mpeg", "mp3")

    attachment = await controller.submit(candidate, 7, "a@example.com")

    assert list(object_store.blobs) == ["7-1700000000500.mp3"]
    assert object_store.blobs["7-1700000000500.mp3"][1] == "audio/mpeg"
    assert attachment.url == "https://cdn.example.com/7-1700000000500.mp3"
    assert attachment.uploader_email == "a@example.com"
    assert len(writer.rows) == 1


def test_storage_key_defaults_to_mp3(object_store):
    controller = UploadController(object_store, FakeAttachmentWriter(), clock=lambda: 2.0)

    assert controller.storage_key(UploadCandidate(b"", "audio/mpeg"), 3) == "3-2000.mp3"


async def test_storage_failure_creates_no_row(object_store):
    object_store.fail = True
    writer = FakeAttachmentWriter()
    controller = UploadController(object_store, writer)

    with pytest.raises(StorageWriteFailedError):
        await controller.persist(UploadCandidate(b"abc", "audio/webm", "webm"), 1, None)

    assert writer.rows == []


async def test_record_failure_leaves_orphaned_blob(object_store):
    controller = UploadController(object_store, FakeAttachmentWriter(fail=True))

    with pytest.raises(RecordCreateFailedError):
        await controller.persist(UploadCandidate(b"abc", "audio/webm", "webm"), 1, None)

    assert len(object_store.blobs) == 1


async def test_persist_does_not_validate(object_store):
    writer = FakeAttachmentWriter()
    controller = UploadController(object_store, writer)

    await controller.persist(UploadCandidate(b"", "audio/ogg", "ogg"), 1, None)

    assert len(writer.rows) == 1


async def test_persist_refuses_code_that_already_has_audio(object_store):
    writer = FakeAttachmentWriter()
    controller = UploadController(object_store, writer, clock=lambda: 1.0)
    await controller.persist(UploadCandidate(b"abc", "audio/webm", "webm"), 1, None)

    with pytest.raises(AlreadyAttachedError):
        await controller.persist(UploadCandidate(b"def", "audio/webm", "webm"), 1, None)

    assert list(object_store.blobs) == ["1-1000.webm"]
    assert len(writer.rows) == 1
