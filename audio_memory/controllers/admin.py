"""Administrator dashboard, code generation and exports."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse

from audio_memory.config.settings import settings
from audio_memory.controllers.dependencies import (
    AdminUserDep,
    IdentityDep,
    OptionalUserDep,
    RepositoryDep,
)
from audio_memory.errors import NotFoundError, RecordCreateFailedError
from audio_memory.presentation.pages import render_admin_login, render_dashboard
from audio_memory.services.csv_export import build_codes_csv, export_filename
from audio_memory.services.qr_images import code_url, render_to_image
from audio_memory.services.repository import CodeRepository
from audio_memory.telemetry import increment_codes_created
from audio_memory.utils import generate_short_code
from audio_memory.views import (
    CodeListResponse,
    GenerateCodesRequest,
    GenerateCodesResponse,
)

router = APIRouter(prefix="/admin", tags=["admin"])

logger = logging.getLogger(__name__)

MAX_GENERATION_ROUNDS = 5


async def _list_codes(repository: CodeRepository) -> CodeListResponse:
    codes = await repository.list_codes_with_attachment_flag()
    return CodeListResponse(
        total=len(codes),
        with_audio=sum(1 for code in codes if code.has_audio),
        codes=codes,
    )


async def _unique_tokens(repository: CodeRepository, count: int) -> list[str]:
    """Draw ``count`` tokens unused both within the batch and in storage."""

    tokens: dict[str, None] = {}
    for _ in range(MAX_GENERATION_ROUNDS):
        missing = count - len(tokens)
        if missing == 0:
            break
        drawn = {generate_short_code() for _ in range(missing)}
        drawn.difference_update(tokens)
        drawn -= await repository.existing_tokens(drawn)
        tokens.update(dict.fromkeys(sorted(drawn)))

    if len(tokens) < count:
        raise RecordCreateFailedError("Could not draw enough unique codes.")
    return list(tokens)


@router.get("/login", response_class=HTMLResponse, include_in_schema=False)
async def admin_login_page(user: OptionalUserDep, identity: IdentityDep) -> Response:
    if identity.is_admin(user):
        return RedirectResponse(url="/admin", status_code=status.HTTP_303_SEE_OTHER)
    return HTMLResponse(render_admin_login())


@router.get("", response_class=HTMLResponse, include_in_schema=False)
async def dashboard(
    user: OptionalUserDep,
    identity: IdentityDep,
    repository: RepositoryDep,
) -> Response:
    """Render the dashboard; anonymous visitors go to login, others to the landing page."""

    if user is None:
        return RedirectResponse(url="/admin/login", status_code=status.HTTP_303_SEE_OTHER)
    if not identity.is_admin(user):
        return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)

    listing = await _list_codes(repository)
    return HTMLResponse(render_dashboard(listing, user.email, settings.origin))


@router.get("/codes", response_model=CodeListResponse)
async def list_codes(
    _admin: AdminUserDep,
    repository: RepositoryDep,
) -> CodeListResponse:
    return await _list_codes(repository)


@router.post(
    "/codes",
    response_model=GenerateCodesResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_codes(
    payload: GenerateCodesRequest,
    admin: AdminUserDep,
    repository: RepositoryDep,
) -> GenerateCodesResponse:
    """Create a batch of new codes."""

    tokens = await _unique_tokens(repository, payload.count)
    created = await repository.insert_codes(tokens)
    increment_codes_created(len(created))
    logger.info("Generated %d codes by %s", len(created), admin.email)
    return GenerateCodesResponse(created=[code.token for code in created])


@router.get("/codes/export.csv")
async def export_codes(_admin: AdminUserDep, repository: RepositoryDep) -> Response:
    codes = await repository.list_codes_with_attachment_flag()
    return Response(
        content=build_codes_csv(codes, settings.origin),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get("/codes/{token}/qr.png")
async def code_image(
    token: str,
    _admin: AdminUserDep,
    repository: RepositoryDep,
) -> Response:
    code = await repository.get_code_by_token(token)
    if code is None:
        raise NotFoundError()

    image = await run_in_threadpool(render_to_image, code_url(code.token))
    return Response(content=image, media_type="image/png")
