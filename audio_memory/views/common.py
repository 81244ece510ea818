"""Response bodies shared by every router."""

from typing import Optional

from pydantic import BaseModel

from audio_memory.errors import AudioMemoryError


class ErrorResponse(BaseModel):
    """JSON body of every application error; ``code`` is the stable machine-readable kind."""

    detail: str
    code: Optional[str] = None

    @classmethod
    def from_error(cls, error: AudioMemoryError) -> "ErrorResponse":
        return cls(detail=error.detail, code=error.code)


class SuccessResponse(BaseModel):
    message: str
