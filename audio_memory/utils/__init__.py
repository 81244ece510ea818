"""Utility helpers for the Audio Memory backend."""

from .security import (
    AuthenticationError,
    create_session_token,
    create_sign_in_token,
    decode_token,
    generate_short_code,
)

__all__ = [
    "generate_short_code",
    "create_sign_in_token",
    "create_session_token",
    "decode_token",
    "AuthenticationError",
]
