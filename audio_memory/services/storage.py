"""S3 object store for uploaded and recorded audio."""

from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from audio_memory.config.settings import settings
from audio_memory.services.aws import create_boto3_client


class StorageError(RuntimeError):
    """Raised when S3 asset persistence fails."""


class ObjectStore(Protocol):
    """Durable key to blob storage with public URL issuance."""

    async def write_blob(self, key: str, payload: bytes, *, content_type: str) -> None:
        ...

    def public_url_for(self, key: str) -> str:
        ...


class S3ObjectStore:
    """Object store backed by an S3 (or S3-compatible) bucket."""

    def __init__(
        self,
        bucket: str | None = None,
        *,
        region: str | None = None,
        endpoint_url: str | None = None,
        public_base_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.bucket = bucket or settings.s3.bucket_name
        self.region = region or settings.s3.region
        self.endpoint_url = endpoint_url or settings.s3.endpoint_url
        self.public_base_url = public_base_url or settings.s3.public_base_url
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = create_boto3_client(
                "s3",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
            )
        return self._client

    async def write_blob(self, key: str, payload: bytes, *, content_type: str) -> None:
        """Upload ``payload`` under ``key``."""

        if not self.bucket:
            raise StorageError("S3 bucket name is not configured.")

        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=payload,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload audio file: {exc}") from exc

    def public_url_for(self, key: str) -> str:
        quoted_key = quote(key)
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{quoted_key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{quoted_key}"
        if self.region == "us-east-1":
            return f"https://{self.bucket}.s3.amazonaws.com/{quoted_key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted_key}"


_default_store: S3ObjectStore | None = None


def get_object_store() -> ObjectStore:
    """Return the process-wide S3 object store."""

    global _default_store
    if _default_store is None:
        _default_store = S3ObjectStore()
    return _default_store


__all__ = ["ObjectStore", "S3ObjectStore", "StorageError", "get_object_store"]
