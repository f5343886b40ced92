# =============================================================================
# File: profilesync/infra/audit/memory_audit_repo.py
# Description: In-process append-only audit log
# =============================================================================

from __future__ import annotations

import copy
import threading
from collections import Counter
from typing import Dict, List, Optional

from profilesync.profile_sync.enums import NotificationStatus, OperationStatus, Section
from profilesync.profile_sync.value_objects import (
    AuditEntry,
    NotificationRecord,
    SyncAttempt,
    SystemSyncEntry,
    utc_now,
)

_UNFINISHED = (OperationStatus.QUEUED, OperationStatus.PROCESSING)


class InMemoryAuditRepository:
    """
    AuditRepositoryPort kept in a list. Reads return copies; entries are
    only ever mutated through the status methods below.
    """

    def __init__(self):
        self._entries: List[AuditEntry] = []
        # operation_id -> update entry (rollback entries are never indexed here)
        self._updates: Dict[str, AuditEntry] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # Writes
    # =========================================================================

    async def append(self, entry: AuditEntry) -> None:
        stored = copy.deepcopy(entry)
        with self._lock:
            self._entries.append(stored)
            if not stored.is_rollback:
                self._updates[stored.operation_id] = stored

    async def update_status(
        self,
        operation_id: str,
        status: OperationStatus,
        *,
        attempts: Optional[int] = None,
        systems: Optional[List[SystemSyncEntry]] = None,
        failure_reason: Optional[str] = None,
    ) -> bool:
        with self._lock:
            entry = self._updates.get(operation_id)
            if entry is None:
                return False
            entry.sync_status = status
            if attempts is not None:
                entry.sync_attempts = attempts
            if systems is not None:
                entry.affected_systems = copy.deepcopy(systems)
            if failure_reason is not None:
                entry.failure_reason = failure_reason
            if status.is_terminal:
                entry.completed_at = utc_now()
            return True

    async def record_attempt(
        self,
        operation_id: str,
        attempt: SyncAttempt,
        systems: List[SystemSyncEntry],
    ) -> bool:
        with self._lock:
            entry = self._updates.get(operation_id)
            if entry is None:
                return False
            entry.sync_errors.append(copy.deepcopy(attempt))
            entry.sync_attempts = max(entry.sync_attempts, attempt.attempt)
            entry.affected_systems = copy.deepcopy(systems)
            return True

    async def add_notification_records(
        self,
        operation_id: str,
        records: List[NotificationRecord],
    ) -> bool:
        with self._lock:
            entry = self._updates.get(operation_id)
            if entry is None:
                return False
            entry.notifications.extend(copy.deepcopy(records))
            return True

    async def set_notification_status(self, operation_id: str, status: NotificationStatus) -> bool:
        with self._lock:
            entry = self._updates.get(operation_id)
            if entry is None:
                return False
            entry.notification_status = status
            return True

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_entry(self, operation_id: str) -> Optional[AuditEntry]:
        with self._lock:
            entry = self._updates.get(operation_id)
            return copy.deepcopy(entry) if entry else None

    async def get_recent_changes(self, subject_id: str, limit: int = 10) -> List[AuditEntry]:
        with self._lock:
            matches = [e for e in reversed(self._entries) if e.subject_id == subject_id]
            return copy.deepcopy(matches[:limit])

    async def get_changes_by_section(
        self,
        subject_id: str,
        section: Section,
        limit: int = 5,
    ) -> List[AuditEntry]:
        with self._lock:
            matches = [
                e for e in reversed(self._entries)
                if e.subject_id == subject_id and e.section is section
            ]
            return copy.deepcopy(matches[:limit])

    async def get_pending_sync_operations(self, limit: Optional[int] = None) -> List[AuditEntry]:
        with self._lock:
            pending = sorted(
                (e for e in self._updates.values() if e.sync_status in _UNFINISHED),
                key=lambda e: e.timestamp,
            )
            return copy.deepcopy(pending[:limit] if limit is not None else pending)

    async def get_recoverable_operations(self) -> List[AuditEntry]:
        return await self.get_pending_sync_operations()

    async def count_by_status(self) -> Dict[str, int]:
        with self._lock:
            counts = Counter(e.sync_status.value for e in self._updates.values())
        return {status.value: counts.get(status.value, 0) for status in OperationStatus}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
