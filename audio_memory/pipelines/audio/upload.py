"""Persistence of validated audio: object store write, then attachment row."""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from audio_memory.errors import (
    AlreadyAttachedError,
    AudioMemoryError,
    RecordCreateFailedError,
    StorageWriteFailedError,
)
from audio_memory.pipelines.audio.ingestion import validate_candidate
from audio_memory.pipelines.audio.types import DEFAULT_EXTENSION, UploadCandidate
from audio_memory.services.storage import ObjectStore, StorageError
from audio_memory.telemetry import observe_upload
from audio_memory.views import AttachmentRead

logger = logging.getLogger(__name__)


class AttachmentWriter(Protocol):
    async def get_attachment_for_code(self, code_id: int) -> AttachmentRead | None:
        ...

    async def insert_attachment(
        self,
        code_id: int,
        url: str,
        uploader_email: str | None,
    ) -> AttachmentRead:
        ...


class UploadController:
    """Validates and stores audio for one code.

    The two writes are not transactional. A blob written before a failed
    insert stays in the bucket unreferenced; keys embed the code id and the
    write time, so a retry never collides with it.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        repository: AttachmentWriter,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._object_store = object_store
        self._repository = repository
        self._clock = clock

    def storage_key(self, candidate: UploadCandidate, code_id: int) -> str:
        extension = candidate.extension or DEFAULT_EXTENSION
        return f"{code_id}-{int(self._clock() * 1000)}.{extension}"

    async def persist(
        self,
        candidate: UploadCandidate,
        code_id: int,
        uploader_email: str | None,
        *,
        source: str = "file",
    ) -> AttachmentRead:
        if await self._repository.get_attachment_for_code(code_id) is not None:
            observe_upload(source, AlreadyAttachedError.code)
            logger.warning("Refusing second attachment code_id=%s source=%s", code_id, source)
            raise AlreadyAttachedError()

        key = self.storage_key(candidate, code_id)
        content_type = candidate.content_type or "application/octet-stream"

        try:
            await self._object_store.write_blob(
                key, candidate.data, content_type=content_type
            )
        except StorageError as exc:
            observe_upload(source, "storage_failed")
            logger.error("Storage write failed code_id=%s key=%s: %s", code_id, key, exc)
            raise StorageWriteFailedError(str(exc)) from exc

        url = self._object_store.public_url_for(key)
        try:
            attachment = await self._repository.insert_attachment(
                code_id, url, uploader_email
            )
        except RecordCreateFailedError:
            observe_upload(source, "record_failed")
            logger.error("Attachment insert failed; orphaned blob key=%s", key)
            raise

        observe_upload(source, "saved")
        logger.info(
            "Saved audio code_id=%s key=%s bytes=%d uploader=%s source=%s",
            code_id,
            key,
            candidate.size,
            uploader_email,
            source,
        )
        return attachment

    async def submit(
        self,
        candidate: UploadCandidate,
        code_id: int,
        uploader_email: str | None,
    ) -> AttachmentRead:
        """Validate a file upload and persist it when it passes."""

        try:
            validate_candidate(candidate)
        except AudioMemoryError as exc:
            observe_upload("file", exc.code)
            raise
        return await self.persist(candidate, code_id, uploader_email, source="file")


__all__ = ["AttachmentWriter", "UploadController"]
