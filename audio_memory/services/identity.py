"""Passwordless identity provider: magic links and signed session cookies."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection
from starlette.responses import Response

from audio_memory.config.settings import settings
from audio_memory.errors import AuthRequestFailedError
from audio_memory.services.email import EmailServiceError, render_link_html, send_email
from audio_memory.services.repository import UserRepository
from audio_memory.telemetry import increment_sign_in_link
from audio_memory.utils import (
    AuthenticationError,
    create_session_token,
    create_sign_in_token,
    decode_token,
)
from audio_memory.views import CurrentUser

logger = logging.getLogger(__name__)


def safe_next_path(candidate: str | None, default: str = "/") -> str:
    """Return ``candidate`` when it is a same-site absolute path."""

    if not candidate:
        return default
    if not candidate.startswith("/") or candidate.startswith("//") or "\\" in candidate:
        return default
    return candidate


class MagicLinkIdentityProvider:
    """Issues e-mailed sign-in links and resolves the current user from a cookie."""

    def __init__(self, site_url: str | None = None) -> None:
        self.site_url = (site_url or settings.origin).rstrip("/")
        self.cookie_name = settings.security.session_cookie_name

    def build_sign_in_link(self, email: str, redirect_target: str | None) -> str:
        next_path = safe_next_path(redirect_target)
        token = create_sign_in_token(email.strip().lower(), next_path)
        query = urlencode({"token": token, "next": next_path})
        return f"{self.site_url}/auth/callback?{query}"

    async def request_sign_in_link(self, email: str, redirect_target: str | None) -> None:
        """E-mail a magic link that signs ``email`` in and lands on ``redirect_target``."""

        link = self.build_sign_in_link(email, redirect_target)
        intro = f"Use the link below to sign in to {settings.app_name}."
        footer = (
            f"The link expires in {settings.security.sign_in_link_expires_minutes} minutes. "
            "If you did not request it you can ignore this message."
        )
        body = f"Hello,\n\n{intro}\n\n{link}\n\n{footer}\n"

        try:
            await send_email(
                recipient=email,
                subject=f"Your {settings.app_name} sign-in link",
                body=body,
                html_body=render_link_html(intro, link, "Sign in", footer),
            )
        except EmailServiceError as exc:
            logger.warning("Magic link delivery failed for %s: %s", email, exc)
            raise AuthRequestFailedError(str(exc)) from exc

        increment_sign_in_link()
        logger.info("Magic link sent to %s", email)

    async def complete_sign_in(
        self,
        token: str,
        response: Response,
        session: AsyncSession,
    ) -> str:
        """Validate a magic-link token, start a session and return where to go next."""

        try:
            payload = decode_token(token, "sign_in")
        except AuthenticationError as exc:
            raise AuthRequestFailedError(
                "This sign-in link is invalid or has expired."
            ) from exc

        user = await UserRepository(session).record_sign_in(payload.sub)
        response.set_cookie(
            self.cookie_name,
            create_session_token(user.email),
            max_age=settings.security.session_expires_minutes * 60,
            httponly=True,
            secure=settings.security.session_cookie_secure,
            samesite="lax",
        )
        return safe_next_path(payload.next)

    def get_current_user(self, connection: HTTPConnection) -> CurrentUser | None:
        token = connection.cookies.get(self.cookie_name)
        if not token:
            return None
        try:
            payload = decode_token(token, "session")
        except AuthenticationError:
            return None
        return CurrentUser(email=payload.sub)

    def sign_out(self, response: Response) -> None:
        response.delete_cookie(self.cookie_name)

    @staticmethod
    def is_admin(user: CurrentUser | None) -> bool:
        return user is not None and user.email.lower() in settings.admin_email_set


_provider: MagicLinkIdentityProvider | None = None


def get_identity_provider() -> MagicLinkIdentityProvider:
    global _provider
    if _provider is None:
        _provider = MagicLinkIdentityProvider()
    return _provider


__all__ = ["MagicLinkIdentityProvider", "get_identity_provider", "safe_next_path"]
