"""CSV inventory export and QR image rendering."""

from __future__ import annotations

import io
from datetime import date, datetime

from PIL import Image

from audio_memory.services.csv_export import build_codes_csv, export_filename
from audio_memory.services.qr_images import code_url, render_to_image
from audio_memory.views import CodeSummary


def test_csv_rows_follow_header():
    codes = [
        CodeSummary(id=1, token="abc12345", created_at=datetime(2024, 1, 1, 15, 30), has_audio=True),
        CodeSummary(id=2, token="zz9xy000", created_at=datetime(2024, 2, 3), has_audio=False),
    ]

    csv_text = build_codes_csv(codes, "https://memories.example/")

    assert csv_text.split("\n") == [
        "QR_Code,URL,Created_At,Has_Audio",
        "abc12345,https://memories.example/qr/abc12345,2024-01-01,Yes",
        "zz9xy000,https://memories.example/qr/zz9xy000,2024-02-03,No",
    ]


def test_empty_export_is_header_only():
    assert build_codes_csv([], "https://memories.example") == "QR_Code,URL,Created_At,Has_Audio"


def test_export_filename_uses_date():
    assert export_filename(date(2024, 3, 9)) == "qr-codes-2024-03-09.csv"


def test_code_url_joins_origin():
    assert code_url("abc12345", "http://testserver/") == "http://testserver/qr/abc12345"


def test_qr_image_is_square_png():
    png = render_to_image("http://testserver/qr/abc12345", size=200, margin=2)

    assert png.startswith(b"\x89PNG\r\n\x1a\n")
    with Image.open(io.BytesIO(png)) as image:
        assert image.size == (200, 200)
