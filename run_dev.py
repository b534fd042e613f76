# run_dev.py
"""
Local development launcher for the Bubble orchestrator API.
Host/port come from .env.dev (HOST, PORT); without a GEMINI_API_KEY the echo client answers.
"""

import uvicorn

from bubble.settings import settings

if __name__ == "__main__":
    uvicorn.run(
        "bubble.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
