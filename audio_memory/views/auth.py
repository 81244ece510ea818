"""Pydantic schemas related to passwordless authentication."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class MagicLinkRequest(BaseModel):
    """E-mail address to send a sign-in link to, and where to land afterwards."""

    email: EmailStr
    next: str | None = Field(
        default=None,
        max_length=512,
        description="Same-site path to redirect to after sign-in",
    )


class MagicLinkResponse(BaseModel):
    sent: bool
    message: str


class CurrentUser(BaseModel):
    """Identity of the signed-in visitor."""

    email: str


class MeResponse(BaseModel):
    user: CurrentUser | None = None
    is_admin: bool = False


__all__ = ["MagicLinkRequest", "MagicLinkResponse", "CurrentUser", "MeResponse"]
