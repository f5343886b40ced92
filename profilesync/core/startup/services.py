# =============================================================================
# File: profilesync/core/startup/services.py
# Description: Downstream adapters, collaborators and the profile sync engine
# =============================================================================

import logging
from typing import List

from fastapi import FastAPI

from profilesync.config.cache_config import get_cache_config
from profilesync.config.integration_config import get_integration_config
from profilesync.config.profile_sync_config import ProfileSyncConfig, get_profile_sync_config
from profilesync.infra.audit.memory_audit_repo import InMemoryAuditRepository
from profilesync.infra.audit.pg_audit_repo import PostgresAuditRepository
from profilesync.infra.collaborators.booking_client import HttpBookingSystemClient
from profilesync.infra.collaborators.notification_delivery import HttpNotificationDelivery
from profilesync.infra.collaborators.search_index_client import HttpSearchIndexClient
from profilesync.infra.collaborators.stakeholder_resolver import HttpStakeholderResolver
from profilesync.infra.persistence.memory_profile_store import InMemoryProfileStore
from profilesync.infra.sync_adapters import (
    BookingSyncAdapter,
    RedisProfileCacheAdapter,
    SearchIndexSyncAdapter,
    WebhookIntegrationAdapter,
)
from profilesync.profile_sync.ports.downstream_sync_port import DownstreamSyncPort
from profilesync.services.application.profile_sync_service import ProfileSyncService

logger = logging.getLogger("profilesync.startup.services")


def initialize_adapters(app: FastAPI, store: InMemoryProfileStore) -> List[DownstreamSyncPort]:
    """One adapter per downstream system that can be reached from this process"""
    integration_config = get_integration_config()

    search_client = HttpSearchIndexClient(integration_config)
    booking_client = HttpBookingSystemClient(integration_config)
    webhook_adapter = WebhookIntegrationAdapter(integration_config)
    app.state.closeables.extend([search_client, booking_client, webhook_adapter])

    adapters: List[DownstreamSyncPort] = [
        SearchIndexSyncAdapter(store, search_client),
        BookingSyncAdapter(booking_client),
        webhook_adapter,
    ]
    if app.state.redis_client is not None:
        adapters.append(RedisProfileCacheAdapter(app.state.redis_client, get_cache_config()))

    logger.info(f"Downstream adapters ready: {', '.join(a.system.value for a in adapters)}")
    return adapters


def initialize_profile_store(config: ProfileSyncConfig) -> InMemoryProfileStore:
    """Authoritative store, seeded from PROFILE_SYNC_SEED_FILE when set"""
    if not config.seed_file:
        logger.warning("PROFILE_SYNC_SEED_FILE not set: profile store starts empty and every update returns 404")
        return InMemoryProfileStore()

    store = InMemoryProfileStore.from_json_file(config.seed_file)
    logger.info(f"Profile store seeded with {len(store.subject_ids())} subject(s) from {config.seed_file}")
    return store


async def initialize_services(app: FastAPI) -> None:
    """Build and start the profile sync engine"""
    integration_config = get_integration_config()

    store = initialize_profile_store(get_profile_sync_config())
    app.state.profile_store = store

    resolver = HttpStakeholderResolver(integration_config)
    delivery = HttpNotificationDelivery(integration_config)
    app.state.closeables.extend([resolver, delivery])

    audit_repository = PostgresAuditRepository() if app.state.postgres_enabled else InMemoryAuditRepository()

    service = ProfileSyncService(
        store,
        initialize_adapters(app, store),
        resolver,
        delivery,
        audit_repository,
        get_profile_sync_config(),
    )
    await service.start()
    app.state.profile_sync_service = service
    logger.info(f"Profile sync engine initialized ({type(audit_repository).__name__})")
