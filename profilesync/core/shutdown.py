# =============================================================================
# File: profilesync/core/shutdown.py
# Description: Graceful shutdown logic for all services
# =============================================================================

import asyncio
import logging

from fastapi import FastAPI

from profilesync.config.logging_config import log_metrics_table
from profilesync.infra.persistence.pg_client import close_db_pool
from profilesync.infra.persistence.redis_client import close_global_client as close_redis

logger = logging.getLogger("profilesync.shutdown")


async def shutdown_all_services(app: FastAPI) -> None:
    """Shutdown all services in the correct order"""

    # Phase 1: Stop the engine (consumers cancelled, queued work stays in the audit trail)
    await shutdown_engine(app)

    # Phase 2: Close HTTP clients
    await shutdown_collaborators(app)

    # Phase 3: Close database connections
    if getattr(app.state, 'postgres_enabled', False):
        await close_db_pool()

    # Phase 4: Close Redis
    if getattr(app.state, 'redis_client', None) is not None:
        await close_redis()


async def shutdown_engine(app: FastAPI, timeout: float = 10.0) -> None:
    service = getattr(app.state, 'profile_sync_service', None)
    if service is None:
        return
    try:
        async with asyncio.timeout(timeout):
            await service.stop()
        log_metrics_table(logger, "Profile sync engine at shutdown", service.get_sync_stats())
    except TimeoutError:
        logger.error(f"Profile sync engine stop timed out after {timeout}s, continuing...")
    except Exception as shutdown_error:
        logger.error(f"Error stopping profile sync engine: {shutdown_error}", exc_info=True)


async def shutdown_collaborators(app: FastAPI) -> None:
    for closeable in getattr(app.state, 'closeables', []):
        try:
            await closeable.close()
        except Exception as close_error:
            logger.error(f"Error closing {type(closeable).__name__}: {close_error}")
    logger.info("HTTP clients closed")
