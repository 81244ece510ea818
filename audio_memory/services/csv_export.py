"""CSV export of the code inventory for printing and bookkeeping."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from typing import Iterable

from audio_memory.services.qr_images import code_url
from audio_memory.views import CodeSummary

CSV_HEADER = ("QR_Code", "URL", "Created_At", "Has_Audio")


def _created_on(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date().isoformat()


def build_codes_csv(codes: Iterable[CodeSummary], origin: str) -> str:
    """Return the export as text, one row per code, newline separated."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for code in codes:
        writer.writerow(
            (
                code.token,
                code_url(code.token, origin),
                _created_on(code.created_at),
                "Yes" if code.has_audio else "No",
            )
        )
    return buffer.getvalue().rstrip("\n")


def export_filename(today: date | None = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"qr-codes-{today.isoformat()}.csv"


__all__ = ["CSV_HEADER", "build_codes_csv", "export_filename"]
