# =============================================================================
# File: profilesync/infra/worker_core/profile_sync/sync_queue.py
# Description: Per-subject FIFO queues of pending sync operations
# =============================================================================

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from profilesync.profile_sync.value_objects import SyncOperation


class SyncQueue:
    """
    One deque per subject. Empty deques are dropped, so the set of keys is
    exactly the set of subjects with pending work.
    """

    def __init__(self):
        self._queues: Dict[str, Deque[SyncOperation]] = {}
        self._lock = threading.Lock()

    def enqueue(self, sync_op: SyncOperation) -> int:
        """Append to the subject's queue; returns the new depth for that subject."""
        with self._lock:
            queue = self._queues.setdefault(sync_op.subject_id, deque())
            queue.append(sync_op)
            return len(queue)

    # Retries go to the tail, behind anything submitted meanwhile
    requeue = enqueue

    def push_front(self, sync_op: SyncOperation) -> int:
        """Put an interrupted operation back ahead of everything queued for its subject."""
        with self._lock:
            queue = self._queues.setdefault(sync_op.subject_id, deque())
            queue.appendleft(sync_op)
            return len(queue)

    def contains(self, sync_op: SyncOperation) -> bool:
        with self._lock:
            return any(op is sync_op for op in self._queues.get(sync_op.subject_id, ()))

    def peek(self, subject_id: str) -> Optional[SyncOperation]:
        with self._lock:
            queue = self._queues.get(subject_id)
            return queue[0] if queue else None

    def pop(self, subject_id: str) -> Optional[SyncOperation]:
        with self._lock:
            queue = self._queues.get(subject_id)
            if not queue:
                return None
            sync_op = queue.popleft()
            if not queue:
                del self._queues[subject_id]
            return sync_op

    def depth(self, subject_id: Optional[str] = None) -> int:
        with self._lock:
            if subject_id is not None:
                return len(self._queues.get(subject_id, ()))
            return sum(len(q) for q in self._queues.values())

    def subjects(self) -> List[str]:
        with self._lock:
            return list(self._queues)

    def subject_depths(self) -> Dict[str, int]:
        with self._lock:
            return {subject_id: len(q) for subject_id, q in self._queues.items()}

    def pending_operations(self) -> List[SyncOperation]:
        with self._lock:
            return [op for q in self._queues.values() for op in q]

    def clear(self) -> int:
        with self._lock:
            dropped = sum(len(q) for q in self._queues.values())
            self._queues.clear()
            return dropped

    def __len__(self) -> int:
        return self.depth()
