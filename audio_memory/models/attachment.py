"""SQLAlchemy model linking a code to a stored audio file."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from audio_memory.models.base import Base


class Attachment(Base):
    __tablename__ = "audio_memories"

    id = Column(Integer, primary_key=True, index=True)
    code_id = Column(
        Integer,
        ForeignKey("qr_codes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url = Column(Text, nullable=False)
    uploader_email = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    code = relationship("Code", back_populates="attachments")


__all__ = ["Attachment"]
