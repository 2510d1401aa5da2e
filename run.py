#!/usr/bin/env python3
"""
Run script for the media conversion gateway
"""
import uvicorn

from mediagate.config.settings import settings
from mediagate.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
