# =============================================================================
# File: profilesync/profile_sync/value_objects.py
# Description: Records correlated by operation_id (operation, snapshot,
#              sync queue entry, notification, audit entry)
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from profilesync.profile_sync.enums import (
    ChangeType,
    DeliveryStatus,
    DownstreamSystem,
    ImpactLevel,
    NotificationStatus,
    OperationStatus,
    Section,
    SystemSyncStatus,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class ChangeClassification:
    """Impact level and affected downstream systems for one section"""
    section: Section
    impact_level: ImpactLevel
    affected_systems: Tuple[DownstreamSystem, ...]

    @property
    def requires_notification(self) -> bool:
        return self.impact_level in (ImpactLevel.HIGH, ImpactLevel.CRITICAL)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "section": self.section.value,
            "impact_level": self.impact_level.value,
            "affected_systems": [s.value for s in self.affected_systems],
            "requires_notification": self.requires_notification,
        }


@dataclass
class RollbackSnapshot:
    """Pre-image of one section, captured before the authoritative write"""
    operation_id: str
    subject_id: str
    section: Section
    previous_value: Any
    actor_id: str
    captured_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "subject_id": self.subject_id,
            "section": self.section.value,
            "previous_value": self.previous_value,
            "actor_id": self.actor_id,
            "captured_at": _iso(self.captured_at),
        }


@dataclass
class UpdateOperation:
    """One requested change to one section of one subject"""
    operation_id: str
    subject_id: str
    section: Section
    new_value: Any
    actor_id: str
    previous_value: Any = None
    created_at: datetime = field(default_factory=utc_now)
    status: OperationStatus = OperationStatus.QUEUED
    retry_count: int = 0
    max_retries: int = 3
    last_error: Optional[str] = None
    attempts: int = 0
    completed_at: Optional[datetime] = None
    notification_dispatched: bool = False

    @property
    def retries_remaining(self) -> bool:
        return self.retry_count < self.max_retries

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "subject_id": self.subject_id,
            "section": self.section.value,
            "new_value": self.new_value,
            "previous_value": self.previous_value,
            "actor_id": self.actor_id,
            "created_at": _iso(self.created_at),
            "status": self.status.value,
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
            "last_error": self.last_error,
            "attempts": self.attempts,
            "completed_at": _iso(self.completed_at),
            "notification_dispatched": self.notification_dispatched,
        }


@dataclass
class SystemSyncEntry:
    """Status of one downstream system within the current attempt"""
    system: DownstreamSystem
    status: SystemSyncStatus = SystemSyncStatus.PENDING
    updated_at: Optional[datetime] = None
    error: Optional[str] = None

    def mark_updated(self) -> None:
        if self.status is not SystemSyncStatus.PENDING:
            raise RuntimeError(f"{self.system.value} already {self.status.value} in this attempt")
        self.status = SystemSyncStatus.UPDATED
        self.updated_at = utc_now()
        self.error = None

    def mark_failed(self, error: str) -> None:
        if self.status is not SystemSyncStatus.PENDING:
            raise RuntimeError(f"{self.system.value} already {self.status.value} in this attempt")
        self.status = SystemSyncStatus.FAILED
        self.updated_at = utc_now()
        self.error = error

    def reset(self) -> None:
        self.status = SystemSyncStatus.PENDING
        self.updated_at = None
        self.error = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "system": self.system.value,
            "status": self.status.value,
            "updated_at": _iso(self.updated_at),
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SystemSyncEntry:
        return cls(
            system=DownstreamSystem(data["system"]),
            status=SystemSyncStatus(data.get("status", SystemSyncStatus.PENDING.value)),
            updated_at=_parse_dt(data.get("updated_at")),
            error=data.get("error"),
        )


@dataclass
class SyncOperation:
    """Queue entry: propagation work for one update operation"""
    operation: UpdateOperation
    classification: ChangeClassification
    systems: List[SystemSyncEntry] = field(default_factory=list)
    # Monotonic time before which the next attempt must not start
    not_before: float = 0.0

    @classmethod
    def create(cls, operation: UpdateOperation, classification: ChangeClassification) -> SyncOperation:
        return cls(
            operation=operation,
            classification=classification,
            systems=[SystemSyncEntry(system=s) for s in classification.affected_systems],
        )

    @property
    def operation_id(self) -> str:
        return self.operation.operation_id

    @property
    def subject_id(self) -> str:
        return self.operation.subject_id

    def begin_attempt(self) -> int:
        """Reset every system to pending and mark the operation processing."""
        for entry in self.systems:
            entry.reset()
        self.operation.status = OperationStatus.PROCESSING
        self.operation.attempts += 1
        return self.operation.attempts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "subject_id": self.subject_id,
            "section": self.operation.section.value,
            "status": self.operation.status.value,
            "retry_count": self.operation.retry_count,
            "max_retries": self.operation.max_retries,
            "last_error": self.operation.last_error,
            "impact_level": self.classification.impact_level.value,
            "systems": [e.to_dict() for e in self.systems],
        }


@dataclass
class SyncAttempt:
    """Retry history item recorded on the audit entry"""
    attempt: int
    retry_count: int
    error: str
    failed_system: Optional[str] = None
    occurred_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt": self.attempt,
            "retry_count": self.retry_count,
            "error": self.error,
            "failed_system": self.failed_system,
            "occurred_at": _iso(self.occurred_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SyncAttempt:
        return cls(
            attempt=data["attempt"],
            retry_count=data["retry_count"],
            error=data["error"],
            failed_system=data.get("failed_system"),
            occurred_at=_parse_dt(data.get("occurred_at")) or utc_now(),
        )


@dataclass
class NotificationRecord:
    """One delivery to one stakeholder over one channel"""
    subject_id: str
    operation_id: str
    recipient_id: str
    channel: str
    status: DeliveryStatus
    sent_at: datetime = field(default_factory=utc_now)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "operation_id": self.operation_id,
            "recipient_id": self.recipient_id,
            "channel": self.channel,
            "status": self.status.value,
            "sent_at": _iso(self.sent_at),
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> NotificationRecord:
        return cls(
            subject_id=data["subject_id"],
            operation_id=data["operation_id"],
            recipient_id=data["recipient_id"],
            channel=data["channel"],
            status=DeliveryStatus(data["status"]),
            sent_at=_parse_dt(data.get("sent_at")) or utc_now(),
            error=data.get("error"),
        )


@dataclass
class AuditEntry:
    """Append-only record of an update or a rollback"""
    entry_id: str
    operation_id: str
    subject_id: str
    section: Section
    actor_id: str
    previous_value: Any
    new_value: Any
    change_type: ChangeType = ChangeType.UPDATE
    impact_level: ImpactLevel = ImpactLevel.LOW
    sync_status: OperationStatus = OperationStatus.QUEUED
    sync_attempts: int = 0
    sync_errors: List[SyncAttempt] = field(default_factory=list)
    affected_systems: List[SystemSyncEntry] = field(default_factory=list)
    notification_status: NotificationStatus = NotificationStatus.NOT_REQUIRED
    notifications: List[NotificationRecord] = field(default_factory=list)
    failure_reason: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None

    @property
    def is_rollback(self) -> bool:
        return self.change_type is ChangeType.ROLLBACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "operation_id": self.operation_id,
            "subject_id": self.subject_id,
            "section": self.section.value,
            "actor_id": self.actor_id,
            "change_type": self.change_type.value,
            "is_rollback": self.is_rollback,
            "previous_value": self.previous_value,
            "new_value": self.new_value,
            "impact_level": self.impact_level.value,
            "sync_status": self.sync_status.value,
            "sync_attempts": self.sync_attempts,
            "sync_errors": [a.to_dict() for a in self.sync_errors],
            "affected_systems": [e.to_dict() for e in self.affected_systems],
            "notification_status": self.notification_status.value,
            "notifications": [n.to_dict() for n in self.notifications],
            "failure_reason": self.failure_reason,
            "timestamp": _iso(self.timestamp),
            "completed_at": _iso(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AuditEntry:
        """Recreate from stored dictionary"""
        return cls(
            entry_id=data["entry_id"],
            operation_id=data["operation_id"],
            subject_id=data["subject_id"],
            section=Section(data["section"]),
            actor_id=data["actor_id"],
            previous_value=data.get("previous_value"),
            new_value=data.get("new_value"),
            change_type=ChangeType(data.get("change_type", ChangeType.UPDATE.value)),
            impact_level=ImpactLevel(data.get("impact_level", ImpactLevel.LOW.value)),
            sync_status=OperationStatus(data.get("sync_status", OperationStatus.QUEUED.value)),
            sync_attempts=data.get("sync_attempts", 0),
            sync_errors=[SyncAttempt.from_dict(a) for a in data.get("sync_errors", [])],
            affected_systems=[SystemSyncEntry.from_dict(e) for e in data.get("affected_systems", [])],
            notification_status=NotificationStatus(
                data.get("notification_status", NotificationStatus.NOT_REQUIRED.value)
            ),
            notifications=[NotificationRecord.from_dict(n) for n in data.get("notifications", [])],
            failure_reason=data.get("failure_reason"),
            timestamp=_parse_dt(data.get("timestamp")) or utc_now(),
            completed_at=_parse_dt(data.get("completed_at")),
        )


@dataclass(frozen=True)
class UpdateResult:
    """Returned synchronously by perform_update"""
    operation_id: str
    updated_value: Any
    rollback_available: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "updated_value": self.updated_value,
            "rollback_available": self.rollback_available,
        }
