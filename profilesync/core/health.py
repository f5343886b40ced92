# =============================================================================
# File: profilesync/core/health.py
# Description: Health check endpoints for the application
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI

from profilesync.core import __version__
from profilesync.core.app_state import get_start_time
from profilesync.infra.persistence import pg_client, redis_client

logger = logging.getLogger("profilesync.health")


def register_health_endpoints(app: FastAPI) -> None:
    """Register health check endpoints directly on the app"""

    @app.get("/health", tags=["System"])
    async def health_check() -> Dict[str, Any]:
        return await get_health_status(app)

    @app.get("/", tags=["System"])
    async def root() -> Dict[str, Any]:
        return {
            "name": "Profile Sync API",
            "version": __version__,
            "started_at": get_start_time().isoformat(),
            "docs": "/docs",
        }


async def get_health_status(app: FastAPI) -> Dict[str, Any]:
    """Engine, PostgreSQL and Redis status"""
    service = getattr(app.state, 'profile_sync_service', None)
    components: Dict[str, Any] = {
        "engine": {"healthy": bool(service and service.worker.is_running)},
    }

    if getattr(app.state, 'postgres_enabled', False):
        components["postgres"] = await pg_client.health_check()
    if getattr(app.state, 'redis_client', None) is not None:
        components["redis"] = await redis_client.health_check(app.state.redis_client)

    healthy = all(c.get("healthy") for c in components.values())
    if not healthy:
        logger.warning(f"Health check degraded: {components}")

    return {
        "status": "healthy" if healthy else "degraded",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": (datetime.now(timezone.utc) - get_start_time()).total_seconds(),
        "components": components,
        "sync": service.get_sync_stats() if service else None,
    }
