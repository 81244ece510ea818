"""Security helpers for magic-link tokens, session tokens and short codes."""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Literal, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from audio_memory.config.settings import settings

SHORT_CODE_ALPHABET = string.ascii_lowercase + string.digits
SHORT_CODE_LENGTH = 8

TokenPurpose = Literal["sign_in", "session"]


def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    """Return a random lowercase alphanumeric token."""

    return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))


class AuthenticationError(Exception):
    """Raised when a JWT cannot be decoded or is otherwise invalid."""


class TokenPayload(BaseModel):
    """Minimal payload structure embedded in signed tokens."""

    sub: str
    exp: datetime
    purpose: TokenPurpose
    iat: datetime | None = None
    next: str | None = None


def _encode(
    subject: str,
    purpose: TokenPurpose,
    expires_delta: timedelta,
    extra: dict[str, Any] | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    to_encode: dict[str, Any] = {
        "sub": subject,
        "exp": now + expires_delta,
        "iat": now,
        "purpose": purpose,
    }
    if extra:
        to_encode.update(extra)

    secret = settings.security.jwt_secret_key.get_secret_value()
    return jwt.encode(
        to_encode,
        secret,
        algorithm=settings.security.jwt_algorithm,
    )


def create_sign_in_token(
    email: str,
    next_path: str | None = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Generate the signed token embedded in a magic link."""

    expires_delta = expires_delta or timedelta(
        minutes=settings.security.sign_in_link_expires_minutes
    )
    extra = {"next": next_path} if next_path else None
    return _encode(email, "sign_in", expires_delta, extra)


def create_session_token(
    email: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Generate the signed token stored in the session cookie."""

    expires_delta = expires_delta or timedelta(
        minutes=settings.security.session_expires_minutes
    )
    return _encode(email, "session", expires_delta)


def decode_token(token: str, purpose: TokenPurpose) -> TokenPayload:
    """Decode and validate a signed token, returning its payload."""

    secret = settings.security.jwt_secret_key.get_secret_value()
    try:
        payload = jwt.decode(
            token, secret, algorithms=[settings.security.jwt_algorithm]
        )
        decoded = TokenPayload.model_validate(payload)
    except (JWTError, ValidationError) as exc:
        raise AuthenticationError("Invalid authentication token") from exc

    if decoded.purpose != purpose:
        raise AuthenticationError("Token was issued for a different purpose")
    return decoded


__all__ = [
    "SHORT_CODE_ALPHABET",
    "SHORT_CODE_LENGTH",
    "generate_short_code",
    "create_sign_in_token",
    "create_session_token",
    "decode_token",
    "AuthenticationError",
    "TokenPayload",
]
