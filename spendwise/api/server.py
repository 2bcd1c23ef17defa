"""
HTTP Server for SpendWise

A stateless FastAPI application:
- POST /api/generate-insights  (auth)  → insight JSON
- POST /api/generate-report    (auth)  → PDF stream
- GET  /api/health             (open)  → liveness

DESIGN DECISION: The app never builds its own clients at import time.
create_app() takes already-built components (tests) or builds them in
the lifespan (production), and releases them on shutdown.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spendwise import __version__
from spendwise.api.errors import install_exception_handlers
from spendwise.api.middleware import (
    REQUEST_ID_HEADER,
    CorrelationIdMiddleware,
    UnhandledErrorMiddleware,
)
from spendwise.api.routes import router
from spendwise.audit import get_logger
from spendwise.config import AppSettings, get_settings
from spendwise.orchestrator import AppComponents, create_app_components


logger = get_logger(__name__)


def create_app(
    components: Optional[AppComponents] = None,
    app_settings: Optional[AppSettings] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        components: Pre-built components. When None they are created
                    from the environment at startup.
        app_settings: HTTP settings (CORS origin, environment).
    """
    app_settings = app_settings or get_settings().app

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "components", None) is None:
            owned = create_app_components()
            app.state.components = owned
        logger.info(
            "server_started",
            environment=app_settings.app_environment,
            allowed_origin=app_settings.allowed_origin,
        )
        try:
            yield
        finally:
            if owned is not None:
                await owned.aclose()
                app.state.components = None
            logger.info("server_stopped")

    app = FastAPI(
        title="SpendWise",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.components = components

    # Last added runs outermost: CORS, then correlation id, then the error boundary.
    app.add_middleware(UnhandledErrorMiddleware, settings=app_settings)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[app_settings.allowed_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=["Content-Disposition", REQUEST_ID_HEADER],
    )

    install_exception_handlers(app, app_settings)
    app.include_router(router)
    return app
