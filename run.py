#!/usr/bin/env python3
"""
Run script for the Audio Memory service
"""
import uvicorn

from audio_memory.config.settings import settings
from audio_memory.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
