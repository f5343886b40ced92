# =============================================================================
# File: profilesync/infra/persistence/rollback_snapshot_store.py
# Description: In-memory, time-bounded map of operation_id -> pre-image
# =============================================================================

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from profilesync.config.logging_config import get_logger
from profilesync.profile_sync.value_objects import RollbackSnapshot

log = get_logger("profilesync.rollback_snapshot_store")


class RollbackSnapshotStore:
    """
    Snapshots live for at most `retention_seconds`, regardless of the
    operation's propagation status. Expired snapshots are invisible to
    get() even before evict_expired() physically removes them.

    Thread-safe: concurrent request handlers and the janitor task share it.
    """

    def __init__(self, retention_seconds: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        self._retention_seconds = retention_seconds
        self._clock = clock
        self._snapshots: Dict[str, Tuple[RollbackSnapshot, float]] = {}
        self._lock = threading.Lock()

    @property
    def retention_seconds(self) -> float:
        return self._retention_seconds

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at >= self._retention_seconds

    def put(self, snapshot: RollbackSnapshot) -> None:
        with self._lock:
            self._snapshots[snapshot.operation_id] = (snapshot, self._clock())

    def get(self, operation_id: str) -> Optional[RollbackSnapshot]:
        with self._lock:
            item = self._snapshots.get(operation_id)
            if item is None:
                return None
            snapshot, stored_at = item
            if self._expired(stored_at, self._clock()):
                del self._snapshots[operation_id]
                return None
            return snapshot

    def remove(self, operation_id: str) -> bool:
        with self._lock:
            return self._snapshots.pop(operation_id, None) is not None

    def evict_expired(self) -> int:
        """Drop every snapshot past the retention window; returns how many."""
        now = self._clock()
        with self._lock:
            expired = [op_id for op_id, (_, stored_at) in self._snapshots.items()
                       if self._expired(stored_at, now)]
            for op_id in expired:
                del self._snapshots[op_id]
        if expired:
            log.debug(f"Evicted {len(expired)} expired rollback snapshots")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)

    def __contains__(self, operation_id: str) -> bool:
        return self.get(operation_id) is not None
