"""Application error kinds.

Every error carries a human-readable ``detail`` that views render as-is, a
stable ``code`` for clients and the HTTP status used by the API layer.
"""

from __future__ import annotations


class AudioMemoryError(RuntimeError):
    """Base class for recoverable application errors."""

    code = "audio_memory_error"
    status_code = 500
    default_detail = "Something went wrong."

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class CapabilityDeniedError(AudioMemoryError):
    """Raised when microphone access is refused."""

    code = "capability_denied"
    status_code = 403
    default_detail = "Microphone access denied. Please allow microphone access."


class UnsupportedTypeError(AudioMemoryError):
    """Raised when an upload's media type is not accepted."""

    code = "unsupported_type"
    status_code = 415
    default_detail = "Please upload an MP3, WAV, M4A, or WebM audio file."


class TooLargeError(AudioMemoryError):
    """Raised when an upload exceeds the size ceiling."""

    code = "too_large"
    status_code = 413
    default_detail = "File size must be under 10MB."


class StorageWriteFailedError(AudioMemoryError):
    """Raised when the object store rejects a blob."""

    code = "storage_write_failed"
    status_code = 502
    default_detail = "Upload failed."


class RecordCreateFailedError(AudioMemoryError):
    """Raised when an attachment or code row cannot be created."""

    code = "record_create_failed"
    status_code = 500
    default_detail = "Could not save the audio memory."


class AuthRequestFailedError(AudioMemoryError):
    """Raised when a magic link cannot be issued or delivered."""

    code = "auth_request_failed"
    status_code = 502
    default_detail = "Could not send the sign-in link. Please try again."


class NotFoundError(AudioMemoryError):
    """Raised when a code token has no matching record."""

    code = "not_found"
    status_code = 404
    default_detail = "This QR code doesn't exist or has been removed."


class AlreadyAttachedError(AudioMemoryError):
    """Raised when audio is uploaded for a code that already has some."""

    code = "already_attached"
    status_code = 409
    default_detail = "This QR code already has an audio memory."


class InvalidTransitionError(AudioMemoryError):
    """Raised when a recording operation is not allowed in the current state."""

    code = "invalid_transition"
    status_code = 409
    default_detail = "That action is not available right now."


__all__ = [
    "AudioMemoryError",
    "CapabilityDeniedError",
    "UnsupportedTypeError",
    "TooLargeError",
    "StorageWriteFailedError",
    "RecordCreateFailedError",
    "AuthRequestFailedError",
    "NotFoundError",
    "AlreadyAttachedError",
    "InvalidTransitionError",
]
