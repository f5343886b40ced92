# Downstream synchronizer adapters (one per DownstreamSystem)
from profilesync.infra.sync_adapters.booking_adapter import BookingSyncAdapter
from profilesync.infra.sync_adapters.cache_adapter import RedisProfileCacheAdapter
from profilesync.infra.sync_adapters.external_integration_adapter import WebhookIntegrationAdapter
from profilesync.infra.sync_adapters.search_index_adapter import SearchIndexSyncAdapter

__all__ = [
    "BookingSyncAdapter",
    "RedisProfileCacheAdapter",
    "SearchIndexSyncAdapter",
    "WebhookIntegrationAdapter",
]
