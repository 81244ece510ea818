"""SQLAlchemy models for the MVC architecture."""

from .base import Base
from .attachment import Attachment  # noqa: F401
from .code import Code  # noqa: F401
from .user import User  # noqa: F401

__all__ = [
    "Base",
    "User",
    "Code",
    "Attachment",
]
