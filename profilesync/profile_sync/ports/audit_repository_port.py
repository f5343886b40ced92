# =============================================================================
# File: profilesync/profile_sync/ports/audit_repository_port.py
# Description: Port interface for audit trail persistence
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, runtime_checkable

from profilesync.profile_sync.enums import NotificationStatus, OperationStatus, Section
from profilesync.profile_sync.value_objects import (
    AuditEntry,
    NotificationRecord,
    SyncAttempt,
    SystemSyncEntry,
)


@runtime_checkable
class AuditRepositoryPort(Protocol):
    """
    Port: Audit Repository

    Defined by: Profile Sync Domain
    Implemented by:
    - InMemoryAuditRepository (profilesync/infra/audit/memory_audit_repo.py)
    - PostgresAuditRepository (profilesync/infra/audit/pg_audit_repo.py)

    Entries are append-only. Status mutations target the update entry of an
    operation (never its rollback entries).

    Categories:
    - Writes (5 methods)
    - Reads (6 methods)
    """

    # =========================================================================
    # Writes
    # =========================================================================

    async def append(self, entry: AuditEntry) -> None:
        ...

    async def update_status(
        self,
        operation_id: str,
        status: OperationStatus,
        *,
        attempts: Optional[int] = None,
        systems: Optional[List[SystemSyncEntry]] = None,
        failure_reason: Optional[str] = None,
    ) -> bool:
        """
        Set sync_status (and completed_at once terminal).

        Returns False if no update entry exists for operation_id.
        """
        ...

    async def record_attempt(
        self,
        operation_id: str,
        attempt: SyncAttempt,
        systems: List[SystemSyncEntry],
    ) -> bool:
        """Append a failed attempt to sync_errors and store the per-system statuses."""
        ...

    async def add_notification_records(
        self,
        operation_id: str,
        records: List[NotificationRecord],
    ) -> bool:
        ...

    async def set_notification_status(
        self,
        operation_id: str,
        status: NotificationStatus,
    ) -> bool:
        ...

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_entry(self, operation_id: str) -> Optional[AuditEntry]:
        """The update entry for operation_id."""
        ...

    async def get_recent_changes(self, subject_id: str, limit: int = 10) -> List[AuditEntry]:
        ...

    async def get_changes_by_section(
        self,
        subject_id: str,
        section: Section,
        limit: int = 5,
    ) -> List[AuditEntry]:
        ...

    async def get_pending_sync_operations(self, limit: Optional[int] = None) -> List[AuditEntry]:
        """Update entries that are queued or processing, oldest first."""
        ...

    async def get_recoverable_operations(self) -> List[AuditEntry]:
        """Unfinished update entries in creation order, for the startup recovery pass."""
        ...


    async def count_by_status(self) -> Dict[str, int]:
        """Update entries per sync_status value."""
        ...
