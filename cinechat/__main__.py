"""
CineChat — Application entry point.

Run with:  python -m cinechat
           uvicorn cinechat.main:app --reload
"""

import uvicorn
from cinechat.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "cinechat.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level,
    )
