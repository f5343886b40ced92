# =============================================================================
# File: profilesync/infra/persistence/redis_client.py
# Description: Async Redis client singleton used by the profile cache adapter
# =============================================================================

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from profilesync.config.cache_config import CacheConfig, get_cache_config
from profilesync.config.logging_config import get_logger
from profilesync.config.reliability_config import ReliabilityConfigs
from profilesync.infra.reliability.retry import retry_async

log = get_logger("profilesync.redis_client")

_MAIN_REDIS_CLIENT: Optional[redis.Redis] = None
_CLIENT_INIT_LOCK = asyncio.Lock()


def _build_redis_client(config: CacheConfig, **kwargs: Any) -> redis.Redis:
    return redis.Redis.from_url(
        config.redis_url,
        decode_responses=True,
        socket_timeout=config.socket_timeout_seconds,
        max_connections=config.max_connections,
        **kwargs
    )


async def init_global_client(config: Optional[CacheConfig] = None, **kwargs: Any) -> redis.Redis:
    """Idempotent global singleton init, PING tested."""
    global _MAIN_REDIS_CLIENT

    if _MAIN_REDIS_CLIENT is not None:
        try:
            await _MAIN_REDIS_CLIENT.ping()
            return _MAIN_REDIS_CLIENT
        except (RedisError, OSError):
            await close_global_client()

    async with _CLIENT_INIT_LOCK:
        if _MAIN_REDIS_CLIENT is None:
            client = _build_redis_client(config or get_cache_config(), **kwargs)
            try:
                await retry_async(client.ping, retry_config=ReliabilityConfigs.redis_retry(), context="Redis init ping")
            except Exception as e:
                log.error(f"Redis client init failed: {e}", exc_info=True)
                await client.aclose()
                raise
            _MAIN_REDIS_CLIENT = client
            log.info("Global Redis client initialized and ping OK.")

    return _MAIN_REDIS_CLIENT


async def close_global_client() -> None:
    global _MAIN_REDIS_CLIENT
    client, _MAIN_REDIS_CLIENT = _MAIN_REDIS_CLIENT, None
    if client is not None:
        try:
            await client.aclose()
            log.info("Global Redis client closed.")
        except (RedisError, OSError) as e:
            log.warning(f"Error closing Redis client: {e}")


async def health_check(r: Optional[redis.Redis] = None) -> Dict[str, Any]:
    client = r or _MAIN_REDIS_CLIENT
    if client is None:
        return {"healthy": False, "error": "not initialized"}
    started = time.monotonic()
    try:
        await client.ping()
        return {"healthy": True, "latency_ms": round((time.monotonic() - started) * 1000, 2)}
    except (RedisError, OSError) as e:
        return {"healthy": False, "error": str(e)}
