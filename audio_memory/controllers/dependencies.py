"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from audio_memory.database import get_session
from audio_memory.pipelines.audio import UploadController
from audio_memory.pipelines.audio.types import TimerFactory
from audio_memory.services.identity import (
    MagicLinkIdentityProvider,
    get_identity_provider,
)
from audio_memory.services.previews import PreviewRegistry
from audio_memory.services.repository import CodeRepository
from audio_memory.services.storage import ObjectStore, get_object_store
from audio_memory.views import CurrentUser

SessionDep = Annotated[AsyncSession, Depends(get_session)]
IdentityDep = Annotated[MagicLinkIdentityProvider, Depends(get_identity_provider)]
ObjectStoreDep = Annotated[ObjectStore, Depends(get_object_store)]


def get_optional_user(
    connection: HTTPConnection,
    identity: IdentityDep,
) -> Optional[CurrentUser]:
    """Resolve the signed-in visitor from the session cookie, if any."""

    return identity.get_current_user(connection)


OptionalUserDep = Annotated[Optional[CurrentUser], Depends(get_optional_user)]


def get_current_user(user: OptionalUserDep) -> CurrentUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in required",
        )
    return user


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


def get_admin_user(user: CurrentUserDep, identity: IdentityDep) -> CurrentUser:
    if not identity.is_admin(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return user


AdminUserDep = Annotated[CurrentUser, Depends(get_admin_user)]


def get_code_repository(session: SessionDep) -> CodeRepository:
    return CodeRepository(session)


RepositoryDep = Annotated[CodeRepository, Depends(get_code_repository)]


def get_upload_controller(
    object_store: ObjectStoreDep,
    repository: RepositoryDep,
) -> UploadController:
    return UploadController(object_store, repository)


UploadControllerDep = Annotated[UploadController, Depends(get_upload_controller)]


def get_previews(connection: HTTPConnection) -> PreviewRegistry:
    """Process-wide registry of recordings awaiting save or discard."""

    return connection.app.state.previews


PreviewsDep = Annotated[PreviewRegistry, Depends(get_previews)]


def get_timer_factory(connection: HTTPConnection) -> TimerFactory:
    return connection.app.state.timer_factory


TimerFactoryDep = Annotated[TimerFactory, Depends(get_timer_factory)]


__all__ = [
    "SessionDep",
    "IdentityDep",
    "ObjectStoreDep",
    "OptionalUserDep",
    "CurrentUserDep",
    "AdminUserDep",
    "RepositoryDep",
    "UploadControllerDep",
    "PreviewsDep",
    "TimerFactoryDep",
    "get_optional_user",
    "get_current_user",
    "get_admin_user",
    "get_code_repository",
    "get_upload_controller",
    "get_previews",
    "get_timer_factory",
]
