"""PNG rendering of code URLs as QR images."""

from __future__ import annotations

import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from PIL import Image

from audio_memory.config.settings import settings


def code_url(token: str, origin: str | None = None) -> str:
    """Public URL printed inside a code's QR image."""

    base = (origin or settings.origin).rstrip("/")
    return f"{base}/qr/{token}"


def render_to_image(url: str, *, size: int | None = None, margin: int | None = None) -> bytes:
    """Render ``url`` as a square PNG of ``size`` pixels with a ``margin`` module border."""

    size = size or settings.qr.size
    margin = settings.qr.margin if margin is None else margin

    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=10, border=margin)
    qr.add_data(url)
    qr.make(fit=True)

    image = qr.make_image(fill_color="black", back_color="white").get_image()
    image = image.convert("RGB").resize((size, size), Image.NEAREST)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


__all__ = ["code_url", "render_to_image"]
