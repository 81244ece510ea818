"""Shared fixtures: throwaway SQLite database, fake object store, signed-in clients."""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Iterator

import pytest

_TMP_DIR = Path(tempfile.mkdtemp(prefix="audio-memory-tests-"))

os.environ["DB_DSN"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'test.db'}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SITE_URL"] = "http://testserver"
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["LOG_FILE"] = str(_TMP_DIR / "app.log")
os.environ["UPLOAD_LOG_FILE"] = str(_TMP_DIR / "uploads.log")
os.environ["MAIL_HOST"] = "smtp.example.com"

from fastapi.testclient import TestClient  # noqa: E402

from audio_memory.config.settings import settings  # noqa: E402
from audio_memory.database import engine, session_scope  # noqa: E402
from audio_memory.main import app  # noqa: E402
from audio_memory.models import Base  # noqa: E402
from audio_memory.pipelines.audio import IntervalTimer  # noqa: E402
from audio_memory.services.previews import PreviewRegistry  # noqa: E402
from audio_memory.services.repository import CodeRepository  # noqa: E402
from audio_memory.services.storage import StorageError, get_object_store  # noqa: E402
from audio_memory.utils import create_session_token  # noqa: E402
from audio_memory.views import CodeRead  # noqa: E402


class FakeObjectStore:
    """In-memory stand-in for the S3 bucket."""

    def __init__(self) -> None:
        self.blobs: dict[str, tuple[bytes, str]] = {}
        self.fail = False

    async def write_blob(self, key: str, payload: bytes, *, content_type: str) -> None:
        if self.fail:
            raise StorageError("bucket unavailable")
        self.blobs[key] = (payload, content_type)

    def public_url_for(self, key: str) -> str:
        return f"https://cdn.example.com/{key}"


async def _reset_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _insert_codes(tokens: list[str]) -> list[CodeRead]:
    async with session_scope() as session:
        return await CodeRepository(session).insert_codes(tokens)


async def _insert_attachment(code_id: int, url: str) -> None:
    async with session_scope() as session:
        await CodeRepository(session).insert_attachment(code_id, url, "someone@example.com")


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def client(object_store: FakeObjectStore) -> Iterator[TestClient]:
    """Test client over a fresh schema with the object store replaced."""

    asyncio.run(_reset_schema())
    app.dependency_overrides[get_object_store] = lambda: object_store
    app.state.previews = PreviewRegistry()
    app.state.timer_factory = IntervalTimer

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def sign_in(client: TestClient, email: str) -> None:
    client.cookies.set(
        settings.security.session_cookie_name,
        create_session_token(email),
    )


@pytest.fixture
def visitor(client: TestClient) -> TestClient:
    sign_in(client, "visitor@example.com")
    return client


@pytest.fixture
def admin(client: TestClient) -> TestClient:
    sign_in(client, "admin@example.com")
    return client


@pytest.fixture
def make_code(client: TestClient):
    """Insert a code with the given token and return it."""

    def factory(token: str = "abc12345") -> CodeRead:
        return asyncio.run(_insert_codes([token]))[0]

    return factory


@pytest.fixture
def attach_audio(client: TestClient):
    def factory(code: CodeRead, url: str = "https://cdn.example.com/existing.mp3") -> None:
        asyncio.run(_insert_attachment(code.id, url))

    return factory
