"""Audio Memory: attach audio recordings to physical objects through QR codes."""

__version__ = "1.0.0"
