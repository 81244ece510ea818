"""Relational store access for users, codes and attachments."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy import exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from audio_memory.errors import RecordCreateFailedError
from audio_memory.models.attachment import Attachment as AttachmentModel
from audio_memory.models.code import Code as CodeModel
from audio_memory.models.user import User as UserModel
from audio_memory.views import AttachmentRead, CodeRead, CodeSummary

logger = logging.getLogger(__name__)


class CodeRepository:
    """Queries and inserts for codes and their audio attachments."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert_codes(self, tokens: Sequence[str]) -> list[CodeRead]:
        rows = [CodeModel(token=token) for token in tokens]
        self.session.add_all(rows)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Failed to insert %d codes", len(rows))
            raise RecordCreateFailedError(f"Failed to create codes: {exc}") from exc

        return [CodeRead.model_validate(row) for row in rows]

    async def existing_tokens(self, tokens: Iterable[str]) -> set[str]:
        candidates = list(tokens)
        if not candidates:
            return set()
        result = await self.session.execute(
            select(CodeModel.token).where(CodeModel.token.in_(candidates))
        )
        return set(result.scalars().all())

    async def list_codes_with_attachment_flag(self) -> list[CodeSummary]:
        """Return every code, newest first, flagged with whether it has audio."""

        has_audio = (
            exists().where(AttachmentModel.code_id == CodeModel.id).label("has_audio")
        )
        result = await self.session.execute(
            select(CodeModel, has_audio).order_by(
                CodeModel.created_at.desc(), CodeModel.id.desc()
            )
        )
        return [
            CodeSummary(
                id=code.id,
                token=code.token,
                created_at=code.created_at,
                has_audio=bool(flag),
            )
            for code, flag in result.all()
        ]

    async def get_code_by_token(self, token: str) -> CodeRead | None:
        result = await self.session.execute(
            select(CodeModel).where(CodeModel.token == token)
        )
        code = result.scalar_one_or_none()
        return CodeRead.model_validate(code) if code else None

    async def get_attachment_for_code(self, code_id: int) -> AttachmentRead | None:
        """Return the oldest attachment for the code, if any."""

        result = await self.session.execute(
            select(AttachmentModel)
            .where(AttachmentModel.code_id == code_id)
            .order_by(AttachmentModel.created_at.asc(), AttachmentModel.id.asc())
            .limit(1)
        )
        attachment = result.scalar_one_or_none()
        return AttachmentRead.model_validate(attachment) if attachment else None

    async def insert_attachment(
        self,
        code_id: int,
        url: str,
        uploader_email: str | None,
    ) -> AttachmentRead:
        attachment = AttachmentModel(
            code_id=code_id,
            url=url,
            uploader_email=uploader_email,
        )
        self.session.add(attachment)
        try:
            await self.session.commit()
            await self.session.refresh(attachment)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise RecordCreateFailedError(
                f"Failed to save audio memory: {exc}"
            ) from exc

        return AttachmentRead.model_validate(attachment)


class UserRepository:
    """Upserts users as they complete a magic-link sign-in."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record_sign_in(self, email: str) -> UserModel:
        normalized = email.strip().lower()
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == normalized)
        )
        user = result.scalar_one_or_none()
        if user is None:
            user = UserModel(email=normalized)
            self.session.add(user)
        else:
            user.last_sign_in_at = datetime.utcnow()

        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def get_by_email(self, email: str) -> UserModel | None:
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email.strip().lower())
        )
        return result.scalar_one_or_none()


__all__ = ["CodeRepository", "UserRepository"]
