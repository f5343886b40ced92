# =============================================================================
# File: profilesync/infra/sync_adapters/cache_adapter.py
# Description: Refreshes the cached profile hash in Redis
# =============================================================================

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as redis

from profilesync.config.cache_config import CacheConfig
from profilesync.profile_sync.enums import DownstreamSystem, Section

log = logging.getLogger("profilesync.sync_adapters.cache")


class RedisProfileCacheAdapter:
    """
    Cache consumer. The profile is a hash at {key_prefix}:{subject_id}
    with one JSON field per section; each write refreshes the TTL.
    """

    system = DownstreamSystem.CACHE

    def __init__(self, client: redis.Redis, config: CacheConfig):
        self._client = client
        self._config = config

    async def apply(self, subject_id: str, section: Section, value: Any) -> None:
        key = self._config.profile_key(subject_id)
        await self._client.hset(key, mapping={section.value: json.dumps(value, default=str)})
        await self._client.expire(key, self._config.profile_ttl_seconds)
        log.debug(f"Cache {key} refreshed ({section.value})")
