# =============================================================================
# File: profilesync/infra/persistence/pg_client.py
# Description: asyncpg pool with retry, JSONB codec and schema bootstrap
# =============================================================================

import json
import pathlib
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import asyncpg

from profilesync.config.logging_config import get_logger
from profilesync.config.pg_client_config import get_database_config
from profilesync.config.reliability_config import ReliabilityConfigs
from profilesync.infra.reliability.retry import retry_async

log = get_logger("profilesync.pg_client")

_POOL: Optional[asyncpg.Pool] = None


async def _init_connection(conn: asyncpg.Connection) -> None:
    """JSONB codec for automatic dict <-> JSONB conversion"""
    await conn.set_type_codec(
        'jsonb',
        encoder=lambda value: json.dumps(value, default=str),
        decoder=json.loads,
        schema='pg_catalog'
    )


async def init_db_pool(dsn_or_url: Optional[str] = None, **pool_kwargs: Any) -> asyncpg.Pool:
    """Initialize the global asyncpg pool with retry support. Idempotent."""
    global _POOL

    if _POOL is not None and not _POOL.is_closing():
        return _POOL

    config = get_database_config()
    dsn = dsn_or_url or config.main_dsn
    if not dsn:
        raise RuntimeError("PostgreSQL DSN not configured (POSTGRES_DSN)")

    params = config.to_asyncpg_params()
    params.update({"init": _init_connection, **pool_kwargs})

    log.info(f"Initializing PostgreSQL pool (hidden DSN): {dsn.split('@')[-1]}")

    async def create_pool() -> asyncpg.Pool:
        pool = await asyncpg.create_pool(dsn=dsn, **params)
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        return pool

    try:
        _POOL = await retry_async(
            create_pool,
            retry_config=ReliabilityConfigs.postgres_retry(),
            context="PostgreSQL pool initialization"
        )
    except Exception as e:
        log.critical(f"Failed to init PostgreSQL pool: {e}", exc_info=True)
        _POOL = None
        raise RuntimeError(f"PostgreSQL pool init error: {e}") from e

    log.info(f"PostgreSQL pool ready. Min/Max size: {params['min_size']}/{params['max_size']}")
    return _POOL


async def get_pool(ensure_initialized: bool = True) -> asyncpg.Pool:
    """Get the global pool, init if needed (default)."""
    if _POOL is None or _POOL.is_closing():
        if ensure_initialized:
            return await init_db_pool()
        raise RuntimeError("PostgreSQL pool not available")
    return _POOL


async def close_db_pool() -> None:
    """Close the global pool gracefully."""
    global _POOL
    pool, _POOL = _POOL, None
    if pool and not pool.is_closing():
        log.info("Closing PostgreSQL pool...")
        try:
            await pool.close()
            log.info("PostgreSQL pool closed.")
        except Exception as e:
            log.error(f"Error closing PostgreSQL pool: {e}", exc_info=True)


@asynccontextmanager
async def acquire_connection() -> AsyncIterator[asyncpg.Connection]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


def _log_if_slow(kind: str, query: str, started: float) -> None:
    elapsed_ms = (time.monotonic() - started) * 1000
    if elapsed_ms > get_database_config().slow_query_threshold_ms:
        log.warning(f"[SLOW QUERY] {kind} took {elapsed_ms:.1f}ms: {query[:150]}...")


async def fetch(query: str, *args: Any, timeout: Optional[float] = None) -> List[asyncpg.Record]:
    """Execute the query and return all rows."""
    async def _fetch_operation():
        started = time.monotonic()
        async with acquire_connection() as conn:
            rows = await conn.fetch(query, *args, timeout=timeout)
        _log_if_slow("FETCH", query, started)
        return rows

    try:
        return await retry_async(
            _fetch_operation,
            retry_config=ReliabilityConfigs.postgres_retry(),
            context=f"FETCH {query[:50]}..."
        )
    except Exception as ex:
        log.error(f"fetch failed: {ex}", exc_info=True)
        raise


async def fetchrow(query: str, *args: Any, timeout: Optional[float] = None) -> Optional[asyncpg.Record]:
    """Execute the query and return the first row."""
    async def _fetchrow_operation():
        started = time.monotonic()
        async with acquire_connection() as conn:
            row = await conn.fetchrow(query, *args, timeout=timeout)
        _log_if_slow("FETCHROW", query, started)
        return row

    try:
        return await retry_async(
            _fetchrow_operation,
            retry_config=ReliabilityConfigs.postgres_retry(),
            context=f"FETCHROW {query[:50]}..."
        )
    except Exception as ex:
        log.error(f"fetchrow failed: {ex}", exc_info=True)
        raise


async def execute(query: str, *args: Any, timeout: Optional[float] = None) -> str:
    """Execute a statement and return its status string (e.g. 'UPDATE 1')."""
    async def _execute_operation():
        started = time.monotonic()
        async with acquire_connection() as conn:
            status = await conn.execute(query, *args, timeout=timeout)
        _log_if_slow("EXECUTE", query, started)
        return status

    try:
        return await retry_async(
            _execute_operation,
            retry_config=ReliabilityConfigs.postgres_retry(),
            context=f"EXECUTE {query[:50]}..."
        )
    except Exception as ex:
        log.error(f"execute failed: {ex}", exc_info=True)
        raise


async def run_schema_from_file(file_path_str: Optional[str] = None) -> None:
    """Execute DDL statements from a SQL file."""
    file_path_str = file_path_str or get_database_config().schema_file
    path = pathlib.Path(file_path_str)
    if not path.is_file():
        raise FileNotFoundError(f"Schema file not found: {file_path_str}")

    sql = path.read_text(encoding="utf-8").strip()
    if not sql:
        log.warning(f"Schema file {file_path_str} is empty")
        return

    async def execute_schema():
        async with acquire_connection() as conn:
            await conn.execute(sql)

    await retry_async(
        execute_schema,
        retry_config=ReliabilityConfigs.postgres_retry(),
        context=f"schema execution from {file_path_str}"
    )
    log.info(f"Schema from {file_path_str} applied successfully")


async def health_check() -> dict:
    """PostgreSQL health check with latency."""
    started = time.monotonic()
    try:
        async with acquire_connection() as conn:
            await conn.fetchval("SELECT 1")
        return {"healthy": True, "latency_ms": round((time.monotonic() - started) * 1000, 2)}
    except Exception as e:
        log.error(f"PostgreSQL health check failed: {e}")
        return {"healthy": False, "error": str(e)}


class _DBProxy:
    """Proxy for main database operations"""
    fetch = staticmethod(fetch)
    fetchrow = staticmethod(fetchrow)
    execute = staticmethod(execute)
    health_check = staticmethod(health_check)


# Database proxy
db = _DBProxy()
