# =============================================================================
# File: tests/conftest.py
# Description: Shared fixtures: fakes for every port and a fast-retrying engine
# =============================================================================

from __future__ import annotations

from typing import Dict

import pytest

from profilesync.config.profile_sync_config import ProfileSyncConfig
from profilesync.config.reliability_config import RetryConfig
from profilesync.infra.audit.memory_audit_repo import InMemoryAuditRepository
from profilesync.infra.persistence.rollback_snapshot_store import RollbackSnapshotStore
from profilesync.profile_sync.enums import DownstreamSystem
from profilesync.services.application.profile_sync_service import ProfileSyncService

from tests.fakes.fake_profile_store import FakeProfileStore
from tests.fakes.fake_stakeholder_resolver import FakeNotificationDelivery, FakeStakeholderResolver
from tests.fakes.fake_sync_adapter import FakeDownstreamAdapter, make_adapters
from tests.fakes.sample_data import SUBJECT_ID, ManualClock, sample_profile


@pytest.fixture
def fast_retry() -> RetryConfig:
    return RetryConfig(max_attempts=3, initial_delay_ms=1, max_delay_ms=5, backoff_factor=2.0, jitter=False)


@pytest.fixture
def engine_config() -> ProfileSyncConfig:
    return ProfileSyncConfig(
        max_retries=3,
        adapter_timeout_seconds=0.5,
        notification_timeout_seconds=0.5,
        snapshot_retention_seconds=3600.0,
        snapshot_cleanup_interval_seconds=60.0,
        recover_on_startup=True,
    )


@pytest.fixture
def store() -> FakeProfileStore:
    return FakeProfileStore({SUBJECT_ID: sample_profile()})


@pytest.fixture
def adapters() -> Dict[DownstreamSystem, FakeDownstreamAdapter]:
    return make_adapters()


@pytest.fixture
def resolver() -> FakeStakeholderResolver:
    resolver = FakeStakeholderResolver()
    resolver.set_stakeholders(SUBJECT_ID, ["client-1"])
    return resolver


@pytest.fixture
def delivery() -> FakeNotificationDelivery:
    return FakeNotificationDelivery()


@pytest.fixture
def audit_repo() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def engine(store, adapters, resolver, delivery, audit_repo, engine_config, fast_retry) -> ProfileSyncService:
    """Engine wired to fakes; not started"""
    return ProfileSyncService(
        store,
        adapters.values(),
        resolver,
        delivery,
        audit_repo,
        engine_config,
        retry_config=fast_retry,
    )


@pytest.fixture
def engine_with_clock(store, adapters, resolver, delivery, audit_repo, engine_config, fast_retry, clock):
    """Engine whose snapshot store uses the manual clock"""
    return ProfileSyncService(
        store,
        adapters.values(),
        resolver,
        delivery,
        audit_repo,
        engine_config,
        snapshots=RollbackSnapshotStore(engine_config.snapshot_retention_seconds, clock=clock),
        retry_config=fast_retry,
    )
