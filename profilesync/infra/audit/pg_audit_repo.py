# =============================================================================
# File: profilesync/infra/audit/pg_audit_repo.py
# Description: PostgreSQL audit log (table profile_change_log, JSONB columns)
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from profilesync.infra.persistence.pg_client import db as pg_db_proxy
from profilesync.profile_sync.enums import NotificationStatus, OperationStatus, Section
from profilesync.profile_sync.value_objects import (
    AuditEntry,
    NotificationRecord,
    SyncAttempt,
    SystemSyncEntry,
)

_COLUMNS = (
    "entry_id, operation_id, subject_id, section, actor_id, change_type, "
    "previous_value, new_value, impact_level, sync_status, sync_attempts, "
    "sync_errors, affected_systems, notification_status, notifications, "
    "failure_reason, \"timestamp\", completed_at"
)

_UPDATE_ONLY = "operation_id = $1 AND change_type = 'update'"


def _affected(status: str) -> bool:
    """asyncpg status string, e.g. 'UPDATE 1'"""
    return status.split()[-1] != "0"


def _row_to_entry(row: Mapping[str, Any]) -> AuditEntry:
    return AuditEntry.from_dict(dict(row))


class PostgresAuditRepository:
    """
    AuditRepositoryPort on PostgreSQL. Schema: profilesync/database/profile_sync.sql.

    The connection layer registers a JSONB codec, so dict/list values are
    passed straight through.
    """

    def __init__(self, db: Any = None):
        self._db = db or pg_db_proxy

    # =========================================================================
    # Writes
    # =========================================================================

    async def append(self, entry: AuditEntry) -> None:
        data = entry.to_dict()
        await self._db.execute(
            f"INSERT INTO profile_change_log ({_COLUMNS}) "
            "VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16, $17, $18)",
            entry.entry_id,
            entry.operation_id,
            entry.subject_id,
            entry.section.value,
            entry.actor_id,
            entry.change_type.value,
            entry.previous_value,
            entry.new_value,
            entry.impact_level.value,
            entry.sync_status.value,
            entry.sync_attempts,
            data["sync_errors"],
            data["affected_systems"],
            entry.notification_status.value,
            data["notifications"],
            entry.failure_reason,
            entry.timestamp,
            entry.completed_at,
        )

    async def update_status(
        self,
        operation_id: str,
        status: OperationStatus,
        *,
        attempts: Optional[int] = None,
        systems: Optional[List[SystemSyncEntry]] = None,
        failure_reason: Optional[str] = None,
    ) -> bool:
        result = await self._db.execute(
            "UPDATE profile_change_log SET "
            "sync_status = $2, "
            "sync_attempts = COALESCE($3::integer, sync_attempts), "
            "affected_systems = COALESCE($4::jsonb, affected_systems), "
            "failure_reason = COALESCE($5::text, failure_reason), "
            "completed_at = CASE WHEN $6::boolean THEN NOW() ELSE completed_at END "
            f"WHERE {_UPDATE_ONLY}",
            operation_id,
            status.value,
            attempts,
            [s.to_dict() for s in systems] if systems is not None else None,
            failure_reason,
            status.is_terminal,
        )
        return _affected(result)

    async def record_attempt(
        self,
        operation_id: str,
        attempt: SyncAttempt,
        systems: List[SystemSyncEntry],
    ) -> bool:
        result = await self._db.execute(
            "UPDATE profile_change_log SET "
            "sync_errors = sync_errors || $2::jsonb, "
            "sync_attempts = GREATEST(sync_attempts, $3::integer), "
            "affected_systems = $4::jsonb "
            f"WHERE {_UPDATE_ONLY}",
            operation_id,
            [attempt.to_dict()],
            attempt.attempt,
            [s.to_dict() for s in systems],
        )
        return _affected(result)

    async def add_notification_records(
        self,
        operation_id: str,
        records: List[NotificationRecord],
    ) -> bool:
        result = await self._db.execute(
            "UPDATE profile_change_log SET notifications = notifications || $2::jsonb "
            f"WHERE {_UPDATE_ONLY}",
            operation_id,
            [r.to_dict() for r in records],
        )
        return _affected(result)

    async def set_notification_status(self, operation_id: str, status: NotificationStatus) -> bool:
        result = await self._db.execute(
            f"UPDATE profile_change_log SET notification_status = $2 WHERE {_UPDATE_ONLY}",
            operation_id,
            status.value,
        )
        return _affected(result)

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_entry(self, operation_id: str) -> Optional[AuditEntry]:
        row = await self._db.fetchrow(
            f"SELECT {_COLUMNS} FROM profile_change_log WHERE {_UPDATE_ONLY}",
            operation_id,
        )
        return _row_to_entry(row) if row else None

    async def get_recent_changes(self, subject_id: str, limit: int = 10) -> List[AuditEntry]:
        rows = await self._db.fetch(
            f"SELECT {_COLUMNS} FROM profile_change_log WHERE subject_id = $1 "
            "ORDER BY \"timestamp\" DESC LIMIT $2",
            subject_id,
            limit,
        )
        return [_row_to_entry(r) for r in rows]

    async def get_changes_by_section(
        self,
        subject_id: str,
        section: Section,
        limit: int = 5,
    ) -> List[AuditEntry]:
        rows = await self._db.fetch(
            f"SELECT {_COLUMNS} FROM profile_change_log WHERE subject_id = $1 AND section = $2 "
            "ORDER BY \"timestamp\" DESC LIMIT $3",
            subject_id,
            section.value,
            limit,
        )
        return [_row_to_entry(r) for r in rows]

    async def get_pending_sync_operations(self, limit: Optional[int] = None) -> List[AuditEntry]:
        rows = await self._db.fetch(
            f"SELECT {_COLUMNS} FROM profile_change_log "
            "WHERE change_type = 'update' AND sync_status IN ('queued', 'processing') "
            "ORDER BY \"timestamp\" ASC LIMIT $1",
            limit,
        )
        return [_row_to_entry(r) for r in rows]

    async def get_recoverable_operations(self) -> List[AuditEntry]:
        return await self.get_pending_sync_operations()

    async def count_by_status(self) -> Dict[str, int]:
        rows = await self._db.fetch(
            "SELECT sync_status, COUNT(*) AS n FROM profile_change_log "
            "WHERE change_type = 'update' GROUP BY sync_status"
        )
        counts = {status.value: 0 for status in OperationStatus}
        for row in rows:
            counts[row["sync_status"]] = row["n"]
        return counts
