# =============================================================================
# File: tests/unit/test_profile_sync_service.py
# Description: End-to-end engine scenarios against fakes
# =============================================================================

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from profilesync.infra.audit.memory_audit_repo import InMemoryAuditRepository
from profilesync.infra.persistence.rollback_snapshot_store import RollbackSnapshotStore
from profilesync.profile_sync.enums import (
    DownstreamSystem,
    ImpactLevel,
    NotificationStatus,
    OperationStatus,
    Section,
)
from profilesync.profile_sync.value_objects import AuditEntry, SyncAttempt, SystemSyncEntry, utc_now
from profilesync.services.application.profile_sync_service import ProfileSyncService

from tests.fakes.sample_data import SUBJECT_ID

EXPECTED_STATS_KEYS = {
    "queued_operations",
    "rollback_cache_size",
    "in_flight_subjects",
    "active_operations",
    "critical_sections",
    "operations_by_status",
    "worker_running",
    "timestamp",
}


@pytest.mark.asyncio
async def test_engine_keeps_injected_empty_collaborators(store, adapters, resolver, delivery, engine_config):
    repo = InMemoryAuditRepository()
    snapshots = RollbackSnapshotStore(engine_config.snapshot_retention_seconds)

    engine = ProfileSyncService(store, adapters.values(), resolver, delivery, repo, engine_config, snapshots=snapshots)

    assert engine.audit.repository is repo
    assert engine.snapshots is snapshots


async def _run(engine: ProfileSyncService):
    await engine.start()
    await engine.join(timeout=5)


# =============================================================================
# Update scenarios
# =============================================================================

@pytest.mark.asyncio
async def test_critical_update_propagates_and_notifies(engine, adapters, delivery, store):
    await engine.start()
    try:
        result = await engine.perform_update(
            SUBJECT_ID, "credentials", {"license_number": "LIC-2"}, "admin-1"
        )
        await engine.join(timeout=5)

        assert store.get_profile(SUBJECT_ID)["credentials"] == {"license_number": "LIC-2", "verified": True}
        assert adapters[DownstreamSystem.SEARCH].get_call_count("apply") == 1
        assert adapters[DownstreamSystem.BOOKING].get_call_count("apply") == 1
        assert not adapters[DownstreamSystem.CACHE].was_called("apply")

        entry = (await engine.get_recent_changes(SUBJECT_ID, limit=1))[0]
        assert entry.operation_id == result.operation_id
        assert entry.sync_status is OperationStatus.COMPLETED
        assert entry.impact_level is ImpactLevel.CRITICAL
        assert entry.notification_status is NotificationStatus.SENT
        assert delivery.get_call_count("send") == 1
        assert {n.channel for n in entry.notifications} == {"websocket", "email"}
    finally:
        await engine.stop()


@pytest.mark.asyncio
async def test_low_impact_update_survives_transient_search_failures(engine, adapters, delivery):
    adapters[DownstreamSystem.SEARCH].configure_failure("apply", "index unavailable", times=2)
    await engine.start()
    try:
        result = await engine.perform_update(SUBJECT_ID, Section.BIO, "New bio", "subject-1")
        await engine.join(timeout=5)

        operation = await engine.get_operation(result.operation_id)
        assert operation["status"] == "completed"
        assert operation["retry_count"] == 2
        assert operation["impact_level"] == "low"

        entry = (await engine.get_changes_by_section(SUBJECT_ID, "bio"))[0]
        assert len(entry.sync_errors) == 2
        assert all(a.failed_system == "search" and "index unavailable" in a.error for a in entry.sync_errors)
        assert entry.notification_status is NotificationStatus.NOT_REQUIRED
        assert delivery.get_call_count("send") == 0
    finally:
        await engine.stop()


@pytest.mark.asyncio
async def test_exhausted_update_stays_applied(engine, adapters, store):
    adapters[DownstreamSystem.SEARCH].configure_failure("apply", "index unavailable")
    await engine.start()
    try:
        result = await engine.perform_update(SUBJECT_ID, Section.LANGUAGES, ["en", "fr"], "subject-1")
        await engine.join(timeout=5)

        entry = (await engine.get_recent_changes(SUBJECT_ID, limit=1))[0]
        assert entry.sync_status is OperationStatus.FAILED
        assert entry.failure_reason
        assert store.get_profile(SUBJECT_ID)["languages"] == ["en", "fr"]
        assert (await engine.get_operation(result.operation_id))["rollback_available"] is True
    finally:
        await engine.stop()


@pytest.mark.asyncio
async def test_rollback_after_completed_propagation(engine, store):
    await engine.start()
    try:
        result = await engine.perform_update(SUBJECT_ID, Section.BIO, "Changed", "subject-1")
        await engine.join(timeout=5)

        assert await engine.rollback(result.operation_id) is True

        assert store.get_profile(SUBJECT_ID)["bio"] == "Hello"
        kinds = [e.change_type.value for e in await engine.get_recent_changes(SUBJECT_ID)]
        assert kinds == ["rollback", "update"]
        assert await engine.rollback(result.operation_id) is False
    finally:
        await engine.stop()


class SlowFirstAppendAuditRepository(InMemoryAuditRepository):
    """The first append stalls, like a round trip to the database"""

    def __init__(self, delay: float):
        super().__init__()
        self._delay = delay

    async def append(self, entry: AuditEntry) -> None:
        delay, self._delay = self._delay, 0.0
        if delay:
            await asyncio.sleep(delay)
        await super().append(entry)


@pytest.mark.asyncio
async def test_concurrent_updates_reach_downstream_in_write_order(
    store, adapters, resolver, delivery, engine_config, fast_retry
):
    engine = ProfileSyncService(
        store,
        adapters.values(),
        resolver,
        delivery,
        SlowFirstAppendAuditRepository(delay=0.05),
        engine_config,
        retry_config=fast_retry,
    )
    await engine.start()
    try:
        await asyncio.gather(
            engine.perform_update(SUBJECT_ID, Section.BIO, "A", "subject-1"),
            engine.perform_update(SUBJECT_ID, Section.BIO, "B", "subject-1"),
        )
        await engine.join(timeout=5)

        authoritative = store.get_profile(SUBJECT_ID)["bio"]
        applied = adapters[DownstreamSystem.SEARCH].applied_values(SUBJECT_ID)
        assert applied == ["A", "B"]
        assert applied[-1] == authoritative
    finally:
        await engine.stop()


# =============================================================================
# Recovery
# =============================================================================

def _pending_entry(operation_id: str, sync_errors: int, minutes_ago: int) -> AuditEntry:
    return AuditEntry(
        entry_id=f"entry-{operation_id}",
        operation_id=operation_id,
        subject_id=SUBJECT_ID,
        section=Section.BIO,
        actor_id="subject-1",
        previous_value="Hello",
        new_value=f"value of {operation_id}",
        sync_status=OperationStatus.PROCESSING if sync_errors else OperationStatus.QUEUED,
        sync_attempts=sync_errors,
        sync_errors=[
            SyncAttempt(attempt=i + 1, retry_count=i + 1, error="search: boom", failed_system="search")
            for i in range(sync_errors)
        ],
        affected_systems=[SystemSyncEntry(system=DownstreamSystem.SEARCH)],
        timestamp=utc_now() - timedelta(minutes=minutes_ago),
    )


@pytest.mark.asyncio
async def test_start_recovers_unfinished_operations(engine, audit_repo, adapters):
    await audit_repo.append(_pending_entry("sync_old", sync_errors=0, minutes_ago=10))
    await audit_repo.append(_pending_entry("sync_retrying", sync_errors=1, minutes_ago=5))
    await audit_repo.append(_pending_entry("sync_exhausted", sync_errors=3, minutes_ago=1))

    await _run(engine)
    try:
        search = adapters[DownstreamSystem.SEARCH]
        assert search.applied_values(SUBJECT_ID) == ["value of sync_old", "value of sync_retrying"]

        assert (await audit_repo.get_entry("sync_old")).sync_status is OperationStatus.COMPLETED
        retried = await audit_repo.get_entry("sync_retrying")
        assert retried.sync_status is OperationStatus.COMPLETED
        assert retried.sync_attempts == 2

        exhausted = await audit_repo.get_entry("sync_exhausted")
        assert exhausted.sync_status is OperationStatus.FAILED
        assert "before restart" in exhausted.failure_reason
    finally:
        await engine.stop()


@pytest.mark.asyncio
async def test_recovery_skips_operations_already_tracked(engine, audit_repo):
    await audit_repo.append(_pending_entry("sync_old", sync_errors=0, minutes_ago=10))

    assert await engine.recover_pending_operations() == 1
    assert await engine.recover_pending_operations() == 0
    assert engine.worker.queue_depth == 1


@pytest.mark.asyncio
async def test_recovery_disabled(engine, audit_repo, adapters):
    engine.config.recover_on_startup = False
    await audit_repo.append(_pending_entry("sync_old", sync_errors=0, minutes_ago=10))

    await _run(engine)
    try:
        assert not adapters[DownstreamSystem.SEARCH].was_called("apply")
    finally:
        await engine.stop()


# =============================================================================
# Operational surface
# =============================================================================

@pytest.mark.asyncio
async def test_sync_stats_shape(engine):
    await engine.perform_update(SUBJECT_ID, Section.BIO, "Queued only", "subject-1")

    stats = engine.get_sync_stats()

    assert set(stats) == EXPECTED_STATS_KEYS
    assert stats["queued_operations"] == 1
    assert stats["rollback_cache_size"] == 1
    assert stats["active_operations"] == 1
    assert stats["worker_running"] is False
    assert "credentials" in stats["critical_sections"]
    assert "bio" not in stats["critical_sections"]
    assert stats["operations_by_status"]["queued"] == 1


@pytest.mark.asyncio
async def test_maintenance_evicts_snapshots_and_prunes_finished(engine_with_clock, clock):
    engine = engine_with_clock
    await engine.start()
    try:
        await engine.perform_update(SUBJECT_ID, Section.BIO, "One", "subject-1")
        await engine.join(timeout=5)

        clock.advance(engine.config.snapshot_retention_seconds + 1)
        result = engine.run_maintenance()

        assert result == {"snapshots_evicted": 1, "operations_pruned": 1}
        assert len(engine.snapshots) == 0
        assert engine.get_sync_stats()["active_operations"] == 0
    finally:
        await engine.stop()


@pytest.mark.asyncio
async def test_get_operation_falls_back_to_audit_trail(engine):
    await engine.start()
    try:
        result = await engine.perform_update(SUBJECT_ID, Section.BIO, "Pruned", "subject-1")
        await engine.join(timeout=5)
        engine.run_maintenance()

        operation = await engine.get_operation(result.operation_id)

        assert engine.worker.get_operation(result.operation_id) is None
        assert operation["status"] == "completed"
        assert operation["retry_count"] == 0
        assert operation["systems"][0]["system"] == "search"
        assert operation["systems"][0]["status"] == "updated"
        assert operation["rollback_available"] is True
    finally:
        await engine.stop()


@pytest.mark.asyncio
async def test_get_operation_unknown(engine):
    assert await engine.get_operation("sync_missing") is None


@pytest.mark.asyncio
async def test_pending_operations_listed_until_started(engine):
    await engine.perform_update(SUBJECT_ID, Section.BIO, "Waiting", "subject-1")

    pending = await engine.get_pending_sync_operations()

    assert len(pending) == 1
    assert pending[0].sync_status is OperationStatus.QUEUED


@pytest.mark.asyncio
async def test_start_and_stop_are_idempotent(engine):
    await engine.start()
    await engine.start()
    assert engine.worker.is_running

    await engine.stop()
    assert not engine.worker.is_running
    await engine.stop()
