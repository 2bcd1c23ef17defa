"""
Server entry point for SpendWise

Run with:
    python -m app.main
or
    uvicorn app.main:app --port 5000

Configuration comes from the environment / .env file:
    SUPABASE_URL, SUPABASE_SERVICE_KEY   (required)
    GEMINI_API_KEY                       (optional; offline insights without it)
    ALLOWED_ORIGIN, PORT, APP_ENVIRONMENT
"""

import logging

import uvicorn

from spendwise.api import create_app
from spendwise.config import get_settings


settings = get_settings().app

logging.basicConfig(
    format="%(message)s",
    level=logging.DEBUG if settings.debug_mode else logging.INFO,
)

app = create_app(app_settings=settings)


def main():
    """Main application entry point."""
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug_mode else "info",
    )


if __name__ == "__main__":
    main()
