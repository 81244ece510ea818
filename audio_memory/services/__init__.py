"""Service layer helpers for external integrations."""

from .email import EmailServiceError, send_email
from .storage import ObjectStore, S3ObjectStore, StorageError, get_object_store

__all__ = [
    "EmailServiceError",
    "send_email",
    "ObjectStore",
    "S3ObjectStore",
    "StorageError",
    "get_object_store",
]
