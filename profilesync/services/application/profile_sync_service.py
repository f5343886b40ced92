# =============================================================================
# File: profilesync/services/application/profile_sync_service.py
# Description: Profile sync engine facade: wiring, lifecycle, recovery,
#              snapshot janitor and the read-only operational surface
# =============================================================================

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from profilesync.config.logging_config import get_logger
from profilesync.config.profile_sync_config import ProfileSyncConfig, get_profile_sync_config
from profilesync.config.reliability_config import RetryConfig, ReliabilityConfigs
from profilesync.infra.audit.memory_audit_repo import InMemoryAuditRepository
from profilesync.infra.metrics import profile_sync_metrics as metrics
from profilesync.infra.persistence.rollback_snapshot_store import RollbackSnapshotStore
from profilesync.infra.worker_core.profile_sync.sync_worker import SyncWorker
from profilesync.profile_sync.classifier import CRITICAL_SECTIONS, classify, resolve_section
from profilesync.profile_sync.enums import NotificationStatus, Section
from profilesync.profile_sync.ports.audit_repository_port import AuditRepositoryPort
from profilesync.profile_sync.ports.authoritative_store_port import AuthoritativeStorePort
from profilesync.profile_sync.ports.downstream_sync_port import DownstreamSyncPort
from profilesync.profile_sync.ports.notification_port import NotificationDeliveryPort
from profilesync.profile_sync.ports.stakeholder_port import StakeholderResolverPort
from profilesync.profile_sync.value_objects import AuditEntry, UpdateOperation, UpdateResult, utc_now
from profilesync.services.application.audit_trail_service import AuditTrailService
from profilesync.services.application.notification_fanout import NotificationFanout
from profilesync.services.application.optimistic_updater import OptimisticUpdater

log = get_logger("profilesync.services.profile_sync")


class ProfileSyncService:
    """
    Profile synchronization engine.

    Features:
    - perform_update returns as soon as the authoritative record is written
    - propagation to search, booking, cache and external systems runs in
      the background with bounded retries
    - explicit rollback while the pre-image snapshot is retained
    - stakeholder notification for high and critical changes
    - append-only audit trail correlated by operation_id
    - recovery of unfinished operations from the audit trail on start()
    """

    def __init__(
        self,
        store: AuthoritativeStorePort,
        adapters: Iterable[DownstreamSyncPort],
        stakeholder_resolver: StakeholderResolverPort,
        notification_delivery: NotificationDeliveryPort,
        audit_repository: Optional[AuditRepositoryPort] = None,
        config: Optional[ProfileSyncConfig] = None,
        *,
        snapshots: Optional[RollbackSnapshotStore] = None,
        retry_config: Optional[RetryConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or get_profile_sync_config()
        if audit_repository is None:
            audit_repository = InMemoryAuditRepository()
        self.audit = AuditTrailService(audit_repository)
        self.snapshots = (
            snapshots if snapshots is not None
            else RollbackSnapshotStore(self.config.snapshot_retention_seconds)
        )
        self.fanout = NotificationFanout(
            stakeholder_resolver,
            notification_delivery,
            self.audit,
            store=store,
            channels=self.config.notification_channels,
            timeout_seconds=self.config.notification_timeout_seconds,
        )
        self.worker = SyncWorker(
            adapters,
            self.audit,
            self.fanout,
            adapter_timeout_seconds=self.config.adapter_timeout_seconds,
            max_concurrent_subjects=self.config.max_concurrent_subjects,
            retry_config=retry_config or ReliabilityConfigs.sync_propagation_retry(self.config.max_retries),
            clock=clock,
        )
        self.updater = OptimisticUpdater(
            store, self.snapshots, self.audit, self.worker, max_retries=self.config.max_retries
        )
        self._janitor_task: Optional[asyncio.Task] = None
        self._started = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        if self._started:
            log.warning("Profile sync engine already started")
            return

        if self.config.recover_on_startup:
            await self.recover_pending_operations()

        await self.worker.start()
        self._janitor_task = asyncio.create_task(self._run_janitor(), name="profile-sync-snapshot-janitor")
        self._started = True
        log.info(
            f"Profile sync engine started (max_retries={self.config.max_retries}, "
            f"snapshot retention {self.config.snapshot_retention_seconds:.0f}s)"
        )

    async def stop(self) -> None:
        if self._janitor_task:
            self._janitor_task.cancel()
            try:
                await self._janitor_task
            except asyncio.CancelledError:
                pass
            self._janitor_task = None
        await self.worker.stop()
        self._started = False
        log.info("Profile sync engine stopped")

    async def join(self, timeout: Optional[float] = None) -> None:
        """Wait for every queued propagation and notification to finish."""
        await self.worker.join(timeout)

    async def recover_pending_operations(self) -> int:
        """
        Re-seed the sync queue from audit entries still queued or processing.

        Returns:
            Number of operations re-queued
        """
        entries = await self.audit.get_recoverable_operations()
        requeued = 0
        for entry in sorted(entries, key=lambda e: e.timestamp):
            if entry.is_rollback or self.worker.get_operation(entry.operation_id):
                continue
            operation = self._operation_from_entry(entry)
            if not operation.retries_remaining:
                await self.audit.mark_failed(
                    operation.operation_id,
                    operation.attempts,
                    None,
                    f"Max retries exceeded before restart ({operation.retry_count}/{operation.max_retries})",
                )
                continue
            self.worker.submit(operation, classify(operation.section))
            requeued += 1
        if requeued:
            log.info(f"Recovered {requeued} unfinished sync operations from the audit trail")
        return requeued

    def _operation_from_entry(self, entry: AuditEntry) -> UpdateOperation:
        return UpdateOperation(
            operation_id=entry.operation_id,
            subject_id=entry.subject_id,
            section=entry.section,
            new_value=entry.new_value,
            previous_value=entry.previous_value,
            actor_id=entry.actor_id,
            created_at=entry.timestamp,
            retry_count=len(entry.sync_errors),
            max_retries=self.config.max_retries,
            last_error=entry.sync_errors[-1].error if entry.sync_errors else None,
            attempts=entry.sync_attempts,
            notification_dispatched=entry.notification_status is not NotificationStatus.PENDING,
        )

    async def _run_janitor(self) -> None:
        interval = self.config.snapshot_cleanup_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                self.run_maintenance()
            except Exception as e:
                log.error(f"Snapshot janitor pass failed: {e}", exc_info=True)

    def run_maintenance(self) -> Dict[str, int]:
        """Evict expired snapshots and forget finished operations."""
        evicted = self.snapshots.evict_expired()
        pruned = self.worker.prune_finished()
        metrics.snapshot_cache_size.set(len(self.snapshots))
        if evicted or pruned:
            log.debug(f"Janitor evicted {evicted} snapshots, pruned {pruned} finished operations")
        return {"snapshots_evicted": evicted, "operations_pruned": pruned}

    # =========================================================================
    # Operations
    # =========================================================================

    async def perform_update(
        self,
        subject_id: str,
        section: Union[Section, str],
        new_value: Any,
        actor_id: str,
    ) -> UpdateResult:
        return await self.updater.perform_update(subject_id, section, new_value, actor_id)

    async def rollback(self, operation_id: str) -> bool:
        return await self.updater.rollback(operation_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_sync_stats(self) -> Dict[str, Any]:
        return {
            "queued_operations": self.worker.queue_depth,
            "rollback_cache_size": len(self.snapshots),
            "in_flight_subjects": self.worker.in_flight_subjects,
            "active_operations": self.worker.active_operations,
            "critical_sections": sorted(s.value for s in CRITICAL_SECTIONS),
            "operations_by_status": self.worker.operations_by_status(),
            "worker_running": self.worker.is_running,
            "timestamp": utc_now().isoformat(),
        }

    async def get_operation(self, operation_id: str) -> Optional[Dict[str, Any]]:
        """Live queue state if the worker still tracks it, else the audit entry."""
        sync_op = self.worker.get_operation(operation_id)
        if sync_op is not None:
            return {
                **sync_op.operation.to_dict(),
                "impact_level": sync_op.classification.impact_level.value,
                "systems": [e.to_dict() for e in sync_op.systems],
                "rollback_available": operation_id in self.snapshots,
            }
        entry = await self.audit.get_entry(operation_id)
        if entry is None:
            return None
        return {
            **entry.to_dict(),
            "status": entry.sync_status.value,
            "retry_count": len(entry.sync_errors),
            "last_error": entry.sync_errors[-1].error if entry.sync_errors else None,
            "systems": [e.to_dict() for e in entry.affected_systems],
            "rollback_available": operation_id in self.snapshots,
        }

    async def get_recent_changes(self, subject_id: str, limit: int = 10) -> List[AuditEntry]:
        return await self.audit.get_recent_changes(subject_id, limit)

    async def get_changes_by_section(
        self,
        subject_id: str,
        section: Union[Section, str],
        limit: int = 5,
    ) -> List[AuditEntry]:
        return await self.audit.get_changes_by_section(subject_id, resolve_section(section), limit)

    async def get_pending_sync_operations(self, limit: Optional[int] = None) -> List[AuditEntry]:
        return await self.audit.get_pending_sync_operations(limit)
