"""Code pages, state and file attachments.

A code with audio renders the player. Without audio a signed-in visitor gets
the upload/record widget and an anonymous one the sign-in form.
"""

from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, Response, UploadFile, status
from fastapi.responses import HTMLResponse

from audio_memory.controllers.dependencies import (
    CurrentUserDep,
    OptionalUserDep,
    PreviewsDep,
    RepositoryDep,
    UploadControllerDep,
)
from audio_memory.errors import AlreadyAttachedError, NotFoundError
from audio_memory.pipelines.audio import initial_player_snapshot, read_candidate
from audio_memory.presentation.pages import (
    render_not_found,
    render_player,
    render_sign_in,
    render_uploader,
)
from audio_memory.services.previews import PREVIEW_ROUTE_PREFIX
from audio_memory.services.repository import CodeRepository
from audio_memory.views import AttachmentRead, CodeRead, CodeStateResponse

router = APIRouter(tags=["codes"])

_AUDIO_FILE_UPLOAD = File(...)


async def load_code(repository: CodeRepository, token: str) -> CodeRead:
    code = await repository.get_code_by_token(token)
    if code is None:
        raise NotFoundError()
    return code


@router.get("/qr/{token}", response_class=HTMLResponse, include_in_schema=False)
async def code_page(
    token: str,
    user: OptionalUserDep,
    repository: RepositoryDep,
) -> HTMLResponse:
    code = await repository.get_code_by_token(token)
    if code is None:
        return HTMLResponse(render_not_found(), status_code=status.HTTP_404_NOT_FOUND)

    attachment = await repository.get_attachment_for_code(code.id)
    if attachment is not None:
        return HTMLResponse(render_player(initial_player_snapshot(attachment.url)))
    if user is None:
        return HTMLResponse(render_sign_in(code.token))
    return HTMLResponse(render_uploader(code.token, user.email))


@router.get("/qr/{token}/state", response_model=CodeStateResponse)
async def code_state(token: str, repository: RepositoryDep) -> CodeStateResponse:
    code = await load_code(repository, token)
    attachment = await repository.get_attachment_for_code(code.id)
    if attachment is not None:
        return CodeStateResponse(token=code.token, view="player", audio_url=attachment.url)
    return CodeStateResponse(token=code.token, view="uploader")


@router.post(
    "/qr/{token}/attachments",
    response_model=AttachmentRead,
    status_code=status.HTTP_201_CREATED,
)
async def upload_attachment(
    token: str,
    user: CurrentUserDep,
    repository: RepositoryDep,
    uploader: UploadControllerDep,
    audio_file: UploadFile = _AUDIO_FILE_UPLOAD,
) -> AttachmentRead:
    """Validate an uploaded audio file and attach it to the code."""

    code = await load_code(repository, token)
    if await repository.get_attachment_for_code(code.id) is not None:
        raise AlreadyAttachedError()

    candidate = await read_candidate(audio_file)
    return await uploader.submit(candidate, code.id, user.email)


@router.get(PREVIEW_ROUTE_PREFIX + "/{preview_id}", include_in_schema=False)
async def recording_preview(preview_id: str, previews: PreviewsDep) -> Response:
    """Serve a finalized recording until its session saves or discards it."""

    payload = previews.get(preview_id)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Preview not found")
    return Response(
        content=payload.data,
        media_type=payload.content_type or "application/octet-stream",
    )
