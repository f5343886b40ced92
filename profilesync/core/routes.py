# =============================================================================
# File: profilesync/core/routes.py
# Description: Route registration for FastAPI application
# =============================================================================

import logging

from fastapi import FastAPI

from profilesync.api.routers.metrics_router import router as metrics_router
from profilesync.api.routers.profile_sync_router import router as profile_sync_router
from profilesync.core.health import register_health_endpoints

logger = logging.getLogger("profilesync.routes")


def setup_routes(app: FastAPI) -> None:
    """Register all routers with the FastAPI application"""

    app.include_router(profile_sync_router)
    app.include_router(metrics_router)
    register_health_endpoints(app)

    logger.info("Routers registered")
