# =============================================================================
# File: profilesync/core/startup/infrastructure.py
# Description: Core infrastructure initialization (PostgreSQL audit, Redis cache)
# =============================================================================

import logging

from fastapi import FastAPI

from profilesync.config.cache_config import get_cache_config
from profilesync.config.pg_client_config import get_database_config
from profilesync.config.profile_sync_config import AuditBackend, get_profile_sync_config
from profilesync.infra.persistence.pg_client import init_db_pool, run_schema_from_file
from profilesync.infra.persistence.redis_client import init_global_client as init_redis

logger = logging.getLogger("profilesync.startup.infrastructure")


async def initialize_databases(app: FastAPI) -> None:
    """PostgreSQL pool, only when the audit trail lives in PostgreSQL"""
    if get_profile_sync_config().audit_backend is not AuditBackend.POSTGRES:
        logger.info("Audit backend is in-memory; PostgreSQL not initialized.")
        return

    await init_db_pool()
    app.state.postgres_enabled = True
    logger.info("PostgreSQL pool initialized.")

    if get_database_config().run_schemas_on_startup:
        await run_schema_from_file()


async def initialize_cache(app: FastAPI) -> None:
    """Redis client backing the profile cache adapter"""
    cache_config = get_cache_config()
    if not cache_config.enabled:
        logger.warning("Profile cache disabled (CACHE_ENABLED=false); cache propagation will fail.")
        return

    app.state.redis_client = await init_redis(cache_config)
    logger.info("Redis client initialized.")
