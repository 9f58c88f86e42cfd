#!/usr/bin/env python3
"""
Convenience script to run the SentiLight server.
"""
import uvicorn
from sentilight.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "sentilight.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower()
    )
