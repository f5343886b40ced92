# =============================================================================
# File: tests/unit/test_rollback_snapshot_store.py
# Description: Time-bounded rollback snapshot store
# =============================================================================

from profilesync.infra.persistence.rollback_snapshot_store import RollbackSnapshotStore
from profilesync.profile_sync.enums import Section
from profilesync.profile_sync.value_objects import RollbackSnapshot

from tests.fakes.sample_data import ManualClock


def _snapshot(operation_id: str = "sync_1") -> RollbackSnapshot:
    return RollbackSnapshot(
        operation_id=operation_id,
        subject_id="subject-1",
        section=Section.BIO,
        previous_value="before",
        actor_id="actor-1",
    )


def test_put_get_remove():
    store = RollbackSnapshotStore()
    store.put(_snapshot())

    assert store.get("sync_1").previous_value == "before"
    assert "sync_1" in store
    assert store.remove("sync_1") is True
    assert store.remove("sync_1") is False
    assert store.get("sync_1") is None


def test_expired_snapshot_is_absent_before_eviction():
    clock = ManualClock()
    store = RollbackSnapshotStore(retention_seconds=60, clock=clock)
    store.put(_snapshot())

    clock.advance(59.9)
    assert store.get("sync_1") is not None

    clock.advance(0.1)
    assert store.get("sync_1") is None
    assert len(store) == 0


def test_evict_expired_keeps_fresh_snapshots():
    clock = ManualClock()
    store = RollbackSnapshotStore(retention_seconds=60, clock=clock)
    store.put(_snapshot("sync_old"))
    clock.advance(30)
    store.put(_snapshot("sync_new"))
    clock.advance(31)

    assert store.evict_expired() == 1
    assert len(store) == 1
    assert store.get("sync_new") is not None


def test_put_overwrites_same_operation():
    store = RollbackSnapshotStore()
    store.put(_snapshot())
    replacement = _snapshot()
    replacement.previous_value = "other"
    store.put(replacement)

    assert len(store) == 1
    assert store.get("sync_1").previous_value == "other"
