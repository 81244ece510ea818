"""Authentication controller providing magic-link sign-in endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import RedirectResponse

from audio_memory.controllers.dependencies import (
    IdentityDep,
    OptionalUserDep,
    SessionDep,
)
from audio_memory.errors import AuthRequestFailedError
from audio_memory.views import (
    MagicLinkRequest,
    MagicLinkResponse,
    MeResponse,
    SuccessResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/magic-link", response_model=MagicLinkResponse)
async def request_magic_link(
    payload: MagicLinkRequest,
    identity: IdentityDep,
) -> MagicLinkResponse:
    """E-mail a one-time sign-in link to the requester."""

    await identity.request_sign_in_link(payload.email, payload.next)
    return MagicLinkResponse(
        sent=True,
        message=f"We sent a login link to {payload.email}.",
    )


@router.get("/callback", include_in_schema=False)
async def magic_link_callback(
    token: str,
    session: SessionDep,
    identity: IdentityDep,
) -> RedirectResponse:
    """Exchange a magic-link token for a session cookie and redirect."""

    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    try:
        next_path = await identity.complete_sign_in(token, response, session)
    except AuthRequestFailedError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.detail,
        ) from exc

    response.headers["location"] = next_path
    return response


@router.post("/sign-out", response_model=SuccessResponse)
async def sign_out(response: Response, identity: IdentityDep) -> SuccessResponse:
    identity.sign_out(response)
    return SuccessResponse(message="Signed out")


@router.get("/me", response_model=MeResponse)
async def read_me(user: OptionalUserDep, identity: IdentityDep) -> MeResponse:
    return MeResponse(user=user, is_admin=identity.is_admin(user))
