#!/usr/bin/env python
"""
Server runner
"""
import uvicorn

from doctext.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "doctext.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True
    )
