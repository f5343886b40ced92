# =============================================================================
# File: profilesync/server.py
# Description: Main FastAPI application entry point
# =============================================================================

from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from profilesync.config.logging_config import setup_logging
from profilesync.core import __version__
from profilesync.core.exceptions import setup_exception_handlers
from profilesync.core.lifespan import lifespan
from profilesync.core.routes import setup_routes

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
setup_logging(
    service_name="api",
    enable_json=os.getenv("ENVIRONMENT") == "production" or None,
)

logger = logging.getLogger("profilesync.server")


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"Profile Sync API v{__version__}",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )
    setup_routes(app)
    setup_exception_handlers(app)
    return app


app = create_app()

__all__ = ["app", "create_app", "__version__"]

# =============================================================================
# Development entry point
# =============================================================================
if __name__ == "__main__":
    import subprocess

    port = os.getenv("PORT", "5001")
    host = os.getenv("HOST", "0.0.0.0")
    reload = os.getenv("RELOAD", "true").lower() == "true"

    logger.info(f"Starting Profile Sync API on {host}:{port} (reload={reload})")

    cmd = [
        "granian",
        "--interface", "asgi",
        "profilesync.server:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        cmd.extend(["--reload", "--reload-paths", "profilesync/"])

    subprocess.run(cmd)
