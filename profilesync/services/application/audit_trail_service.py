# =============================================================================
# File: profilesync/services/application/audit_trail_service.py
# Description: Builds and updates audit entries for profile changes
# =============================================================================

from __future__ import annotations

from typing import Awaitable, Dict, List, Optional, TypeVar

from profilesync.config.logging_config import get_logger
from profilesync.profile_sync.enums import ChangeType, NotificationStatus, OperationStatus, Section
from profilesync.profile_sync.ports.audit_repository_port import AuditRepositoryPort
from profilesync.profile_sync.value_objects import (
    AuditEntry,
    ChangeClassification,
    NotificationRecord,
    RollbackSnapshot,
    SyncAttempt,
    SystemSyncEntry,
    UpdateOperation,
    utc_now,
)
from profilesync.utils.uuid_utils import generate_uuid_str

log = get_logger("profilesync.services.audit_trail")

T = TypeVar("T")


class AuditTrailService:
    """
    Append-only change history correlated by operation_id.

    Writes made while an operation is already committed (status changes,
    retry history, notification records) are logged and absorbed on
    failure: the audit trail must never undo or block propagation.
    Reads propagate repository errors to the caller.
    """

    def __init__(self, repository: AuditRepositoryPort):
        self._repository = repository

    @property
    def repository(self) -> AuditRepositoryPort:
        return self._repository

    async def _absorb(self, what: str, operation_id: str, call: Awaitable[T]) -> Optional[T]:
        try:
            return await call
        except Exception as e:
            log.error(f"Audit {what} failed for {operation_id}: {e}", exc_info=True)
            return None

    # =========================================================================
    # Writes
    # =========================================================================

    async def record_update(
        self,
        operation: UpdateOperation,
        classification: ChangeClassification,
    ) -> Optional[AuditEntry]:
        """Append the update entry; None if the repository rejected it."""
        entry = AuditEntry(
            entry_id=generate_uuid_str(),
            operation_id=operation.operation_id,
            subject_id=operation.subject_id,
            section=operation.section,
            actor_id=operation.actor_id,
            previous_value=operation.previous_value,
            new_value=operation.new_value,
            change_type=ChangeType.UPDATE,
            impact_level=classification.impact_level,
            sync_status=OperationStatus.QUEUED,
            affected_systems=[SystemSyncEntry(system=s) for s in classification.affected_systems],
            notification_status=(
                NotificationStatus.PENDING if classification.requires_notification
                else NotificationStatus.NOT_REQUIRED
            ),
            timestamp=operation.created_at,
        )
        try:
            await self._repository.append(entry)
        except Exception as e:
            log.error(f"Audit append failed for {operation.operation_id}: {e}", exc_info=True)
            return None
        return entry

    async def record_rollback(
        self,
        snapshot: RollbackSnapshot,
        classification: ChangeClassification,
    ) -> Optional[AuditEntry]:
        """Previous and new value are both the restored value."""
        now = utc_now()
        entry = AuditEntry(
            entry_id=generate_uuid_str(),
            operation_id=snapshot.operation_id,
            subject_id=snapshot.subject_id,
            section=snapshot.section,
            actor_id=snapshot.actor_id,
            previous_value=snapshot.previous_value,
            new_value=snapshot.previous_value,
            change_type=ChangeType.ROLLBACK,
            impact_level=classification.impact_level,
            sync_status=OperationStatus.COMPLETED,
            timestamp=now,
            completed_at=now,
        )
        try:
            await self._repository.append(entry)
        except Exception as e:
            log.error(f"Audit rollback append failed for {snapshot.operation_id}: {e}", exc_info=True)
            return None
        return entry

    async def mark_processing(self, operation_id: str, attempt: int) -> None:
        await self._absorb("status update", operation_id, self._repository.update_status(
            operation_id, OperationStatus.PROCESSING, attempts=attempt,
        ))

    async def record_failed_attempt(
        self,
        operation_id: str,
        attempt: SyncAttempt,
        systems: List[SystemSyncEntry],
    ) -> None:
        await self._absorb("attempt record", operation_id,
                           self._repository.record_attempt(operation_id, attempt, systems))

    async def mark_retry_scheduled(self, operation_id: str) -> None:
        await self._absorb("status update", operation_id,
                           self._repository.update_status(operation_id, OperationStatus.QUEUED))

    async def mark_completed(self, operation_id: str, attempts: int, systems: List[SystemSyncEntry]) -> None:
        await self._absorb("status update", operation_id, self._repository.update_status(
            operation_id, OperationStatus.COMPLETED, attempts=attempts, systems=systems,
        ))

    async def mark_failed(
        self,
        operation_id: str,
        attempts: int,
        systems: Optional[List[SystemSyncEntry]],
        reason: str,
    ) -> None:
        await self._absorb("status update", operation_id, self._repository.update_status(
            operation_id, OperationStatus.FAILED, attempts=attempts, systems=systems, failure_reason=reason,
        ))

    async def record_notifications(
        self,
        operation_id: str,
        records: List[NotificationRecord],
        status: NotificationStatus,
    ) -> None:
        if records:
            await self._absorb("notification record", operation_id,
                               self._repository.add_notification_records(operation_id, records))
        await self._absorb("notification status", operation_id,
                           self._repository.set_notification_status(operation_id, status))

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_entry(self, operation_id: str) -> Optional[AuditEntry]:
        return await self._repository.get_entry(operation_id)

    async def get_recent_changes(self, subject_id: str, limit: int = 10) -> List[AuditEntry]:
        return await self._repository.get_recent_changes(subject_id, limit)

    async def get_changes_by_section(self, subject_id: str, section: Section, limit: int = 5) -> List[AuditEntry]:
        return await self._repository.get_changes_by_section(subject_id, section, limit)

    async def get_pending_sync_operations(self, limit: Optional[int] = None) -> List[AuditEntry]:
        return await self._repository.get_pending_sync_operations(limit)

    async def get_recoverable_operations(self) -> List[AuditEntry]:
        return await self._repository.get_recoverable_operations()

    async def count_by_status(self) -> Dict[str, int]:
        return await self._repository.count_by_status()
