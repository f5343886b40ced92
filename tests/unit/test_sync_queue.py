# =============================================================================
# File: tests/unit/test_sync_queue.py
# Description: Per-subject FIFO queues
# =============================================================================

from profilesync.infra.worker_core.profile_sync.sync_queue import SyncQueue
from profilesync.profile_sync.classifier import classify
from profilesync.profile_sync.enums import Section
from profilesync.profile_sync.value_objects import SyncOperation, UpdateOperation


def _sync_op(operation_id: str, subject_id: str = "subject-1") -> SyncOperation:
    operation = UpdateOperation(
        operation_id=operation_id,
        subject_id=subject_id,
        section=Section.BIO,
        new_value=operation_id,
        actor_id="actor-1",
    )
    return SyncOperation.create(operation, classify(Section.BIO))


def test_fifo_per_subject():
    queue = SyncQueue()
    assert queue.enqueue(_sync_op("a")) == 1
    assert queue.enqueue(_sync_op("b")) == 2

    assert queue.peek("subject-1").operation_id == "a"
    assert queue.pop("subject-1").operation_id == "a"
    assert queue.pop("subject-1").operation_id == "b"
    assert queue.pop("subject-1") is None


def test_requeue_goes_to_tail():
    queue = SyncQueue()
    first = _sync_op("a")
    queue.enqueue(first)
    queue.enqueue(_sync_op("b"))

    queue.requeue(queue.pop("subject-1"))

    assert [op.operation_id for op in queue.pending_operations()] == ["b", "a"]


def test_subjects_are_independent_and_empty_queues_dropped():
    queue = SyncQueue()
    queue.enqueue(_sync_op("a", "subject-1"))
    queue.enqueue(_sync_op("b", "subject-2"))
    queue.enqueue(_sync_op("c", "subject-2"))

    assert queue.subject_depths() == {"subject-1": 1, "subject-2": 2}
    assert queue.depth() == 3
    assert len(queue) == 3

    queue.pop("subject-1")
    assert set(queue.subjects()) == {"subject-2"}
    assert queue.depth("subject-1") == 0


def test_clear():
    queue = SyncQueue()
    queue.enqueue(_sync_op("a"))
    queue.clear()
    assert queue.depth() == 0
    assert queue.subjects() == []


def test_push_front_goes_ahead_of_queued_work():
    queue = SyncQueue()
    interrupted = _sync_op("a")
    queue.enqueue(interrupted)
    queue.enqueue(_sync_op("b"))
    queue.pop("subject-1")

    assert not queue.contains(interrupted)
    assert queue.push_front(interrupted) == 2
    assert queue.contains(interrupted)
    assert [op.operation_id for op in queue.pending_operations()] == ["a", "b"]
