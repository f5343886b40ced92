# =============================================================================
# File: profilesync/profile_sync/ports/downstream_sync_port.py
# Description: Port interface for downstream synchronizer adapters
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from profilesync.profile_sync.enums import DownstreamSystem, Section


@runtime_checkable
class DownstreamSyncPort(Protocol):
    """
    Port: Downstream Synchronizer

    Defined by: Profile Sync Domain
    Implemented by:
    - SearchIndexSyncAdapter (profilesync/infra/sync_adapters/search_index_adapter.py)
    - BookingSyncAdapter (profilesync/infra/sync_adapters/booking_adapter.py)
    - RedisProfileCacheAdapter (profilesync/infra/sync_adapters/cache_adapter.py)
    - WebhookIntegrationAdapter (profilesync/infra/sync_adapters/external_integration_adapter.py)

    One adapter per consumer system. apply() must be idempotent: a retry
    re-invokes every system of a partially-succeeded attempt.
    """

    system: DownstreamSystem

    async def apply(self, subject_id: str, section: Section, value: Any) -> None:
        """
        Apply one section's new state to this consumer.

        Raises:
            Exception: any failure marks this system failed for the attempt
        """
        ...
