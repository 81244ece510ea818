"""Clock-style formatting for elapsed and playback times."""

from __future__ import annotations

import math


def format_clock(seconds: float | None) -> str:
    """Format ``seconds`` as ``m:ss``; non-finite or negative values show ``0:00``."""

    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return "0:00"
    minutes = int(seconds // 60)
    remainder = int(seconds % 60)
    return f"{minutes}:{remainder:02d}"


__all__ = ["format_clock"]
