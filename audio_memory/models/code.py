"""SQLAlchemy model for printable QR codes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from audio_memory.models.base import Base


class Code(Base):
    __tablename__ = "qr_codes"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(16), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    attachments = relationship(
        "Attachment",
        back_populates="code",
        order_by="Attachment.created_at",
    )


__all__ = ["Code"]
