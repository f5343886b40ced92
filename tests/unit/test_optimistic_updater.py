# =============================================================================
# File: tests/unit/test_optimistic_updater.py
# Description: Synchronous update path and explicit rollback
# =============================================================================

import pytest

from profilesync.common.exceptions.exceptions import ValidationError
from profilesync.profile_sync.enums import ChangeType, NotificationStatus, OperationStatus, Section
from profilesync.profile_sync.exceptions import ApplyError, RollbackError, SubjectNotFoundError
from profilesync.utils.uuid_utils import OPERATION_ID_PREFIX

from tests.fakes.sample_data import SUBJECT_ID


@pytest.mark.asyncio
async def test_update_applies_immediately_and_queues(engine, store, adapters):
    result = await engine.perform_update(SUBJECT_ID, "bio", "New bio", "actor-1")

    assert result.operation_id.startswith(OPERATION_ID_PREFIX)
    assert result.updated_value == "New bio"
    assert result.rollback_available is True
    assert await store.read_section(SUBJECT_ID, Section.BIO) == "New bio"
    # Nothing propagated yet: the worker is not running
    assert not any(a.was_called("apply") for a in adapters.values())
    assert engine.worker.queue_depth == 1


@pytest.mark.asyncio
async def test_snapshot_captured_before_write(engine, store):
    result = await engine.perform_update(SUBJECT_ID, "bio", "New bio", "actor-1")

    snapshot = engine.snapshots.get(result.operation_id)
    assert snapshot.previous_value == "Hello"
    assert snapshot.actor_id == "actor-1"
    methods = [c.method for c in store.get_all_calls()]
    assert methods == ["read_section", "write_section"]


@pytest.mark.asyncio
async def test_mapping_section_is_merged(engine, store):
    result = await engine.perform_update(SUBJECT_ID, "personal_info", {"email": "new@example.com"}, "actor-1")

    assert result.updated_value == {"first_name": "Ada", "last_name": "Lovelace", "email": "new@example.com"}
    assert await store.read_section(SUBJECT_ID, Section.PERSONAL_INFO) == result.updated_value


@pytest.mark.asyncio
async def test_update_writes_audit_entry(engine):
    result = await engine.perform_update(SUBJECT_ID, "credentials", {"license_number": "LIC-2"}, "actor-1")

    entry = await engine.audit.get_entry(result.operation_id)
    assert entry.change_type is ChangeType.UPDATE
    assert entry.previous_value == {"license_number": "LIC-1", "verified": True}
    assert entry.new_value == {"license_number": "LIC-2", "verified": True}
    assert entry.sync_status is OperationStatus.QUEUED
    assert entry.notification_status is NotificationStatus.PENDING
    assert [s.system.value for s in entry.affected_systems] == ["search", "booking"]


@pytest.mark.asyncio
async def test_unknown_section_rejected_before_any_write(engine, store):
    with pytest.raises(ValidationError):
        await engine.perform_update(SUBJECT_ID, "favourite_colour", "blue", "actor-1")

    assert store.get_all_calls() == []
    assert len(engine.snapshots) == 0


@pytest.mark.asyncio
async def test_wrong_shape_rejected_before_any_write(engine, store):
    with pytest.raises(ValidationError):
        await engine.perform_update(SUBJECT_ID, "availability", "always", "actor-1")

    assert store.get_all_calls() == []


@pytest.mark.asyncio
async def test_unknown_subject(engine):
    with pytest.raises(SubjectNotFoundError):
        await engine.perform_update("nobody", "bio", "x", "actor-1")

    assert len(engine.snapshots) == 0
    assert engine.worker.queue_depth == 0


@pytest.mark.asyncio
async def test_failed_write_discards_snapshot_and_queues_nothing(engine, store, audit_repo):
    store.configure_failure("write_section", "disk full")

    with pytest.raises(ApplyError) as exc_info:
        await engine.perform_update(SUBJECT_ID, "bio", "New bio", "actor-1")

    assert exc_info.value.operation_id is not None
    assert len(engine.snapshots) == 0
    assert engine.worker.queue_depth == 0
    assert len(audit_repo) == 0


@pytest.mark.asyncio
async def test_failed_pre_image_read_is_apply_error(engine, store):
    store.configure_failure("read_section", "connection reset")

    with pytest.raises(ApplyError):
        await engine.perform_update(SUBJECT_ID, "bio", "New bio", "actor-1")

    assert len(engine.snapshots) == 0


@pytest.mark.asyncio
async def test_audit_failure_does_not_block_update(engine, audit_repo, monkeypatch):
    async def broken_append(entry):
        raise RuntimeError("audit store down")

    monkeypatch.setattr(audit_repo, "append", broken_append)

    result = await engine.perform_update(SUBJECT_ID, "bio", "New bio", "actor-1")

    assert result.updated_value == "New bio"
    assert engine.worker.queue_depth == 1


# =============================================================================
# Rollback
# =============================================================================

@pytest.mark.asyncio
async def test_rollback_restores_previous_value(engine, store):
    result = await engine.perform_update(SUBJECT_ID, "bio", "New bio", "actor-1")

    assert await engine.rollback(result.operation_id) is True

    assert await store.read_section(SUBJECT_ID, Section.BIO) == "Hello"
    assert engine.snapshots.get(result.operation_id) is None


@pytest.mark.asyncio
async def test_rollback_is_audited(engine):
    result = await engine.perform_update(SUBJECT_ID, "bio", "New bio", "actor-1")
    await engine.rollback(result.operation_id)

    changes = await engine.get_recent_changes(SUBJECT_ID)
    assert [c.change_type for c in changes] == [ChangeType.ROLLBACK, ChangeType.UPDATE]
    rollback = changes[0]
    assert rollback.is_rollback
    assert rollback.previous_value == rollback.new_value == "Hello"
    assert rollback.operation_id == result.operation_id


@pytest.mark.asyncio
async def test_second_rollback_returns_false(engine):
    result = await engine.perform_update(SUBJECT_ID, "bio", "New bio", "actor-1")

    assert await engine.rollback(result.operation_id) is True
    assert await engine.rollback(result.operation_id) is False


@pytest.mark.asyncio
async def test_rollback_of_unknown_operation(engine):
    assert await engine.rollback("sync_does-not-exist") is False


@pytest.mark.asyncio
async def test_rollback_after_retention_window(engine_with_clock, clock, store):
    engine = engine_with_clock
    result = await engine.perform_update(SUBJECT_ID, "bio", "New bio", "actor-1")

    clock.advance(3600)

    assert await engine.rollback(result.operation_id) is False
    assert await store.read_section(SUBJECT_ID, Section.BIO) == "New bio"


@pytest.mark.asyncio
async def test_failed_rollback_write_raises_and_keeps_snapshot(engine, store):
    result = await engine.perform_update(SUBJECT_ID, "bio", "New bio", "actor-1")
    store.configure_failure("write_section", "disk full", times=1)

    with pytest.raises(RollbackError) as exc_info:
        await engine.rollback(result.operation_id)

    assert exc_info.value.operation_id == result.operation_id
    assert engine.snapshots.get(result.operation_id) is not None

    # Operator retry succeeds once the store recovers
    assert await engine.rollback(result.operation_id) is True
    assert await store.read_section(SUBJECT_ID, Section.BIO) == "Hello"
