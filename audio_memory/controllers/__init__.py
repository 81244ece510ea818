"""FastAPI routers acting as controllers in the MVC architecture."""

from . import admin, auth, codes, recording

__all__ = ["admin", "auth", "codes", "recording"]
