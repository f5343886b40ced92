# =============================================================================
# File: profilesync/core/lifespan.py
# Description: Application lifespan management (startup/shutdown)
# =============================================================================

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from profilesync.core import __version__
from profilesync.core.app_state import AppState
from profilesync.core.shutdown import shutdown_all_services
from profilesync.core.startup.infrastructure import initialize_cache, initialize_databases
from profilesync.core.startup.services import initialize_services

logger = logging.getLogger("profilesync.lifespan")


# =============================================================================
# LIFESPAN (Startup/Shutdown)
# =============================================================================
@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """Application lifespan manager with structured initialization"""

    logger.info(f"Profile Sync {__version__} starting up...")

    app_instance.state = AppState()

    try:
        # Phase 1: Core Infrastructure
        logger.info("Phase 1: Initializing core infrastructure...")
        await initialize_databases(app_instance)
        await initialize_cache(app_instance)

        # Phase 2: Engine (recovery pass, worker, snapshot janitor)
        logger.info("Phase 2: Initializing profile sync engine...")
        await initialize_services(app_instance)

        logger.info("=" * 60)
        logger.info(f"Profile Sync v{__version__} ready to serve requests")
        logger.info("=" * 60)

        yield

    except Exception as startup_error:
        logger.error(f"Critical error during startup: {startup_error}", exc_info=True)
        raise

    finally:
        logger.info(f"Profile Sync v{__version__} shutting down...")
        try:
            async with asyncio.timeout(30.0):
                await shutdown_all_services(app_instance)
            logger.info(f"Profile Sync v{__version__} stopped gracefully")
        except TimeoutError:
            logger.error("Shutdown timed out after 30s, forcing exit")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)
