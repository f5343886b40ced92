# =============================================================================
# File: profilesync/services/application/optimistic_updater.py
# Description: Synchronous update path (snapshot, apply, audit, hand-off)
#              and explicit rollback
# =============================================================================

from __future__ import annotations

import asyncio
import weakref
from typing import TYPE_CHECKING, Any, Union

from profilesync.config.logging_config import get_logger
from profilesync.infra.metrics import profile_sync_metrics as metrics
from profilesync.infra.persistence.rollback_snapshot_store import RollbackSnapshotStore
from profilesync.profile_sync.classifier import classify, resolve_section
from profilesync.profile_sync.enums import Section
from profilesync.profile_sync.exceptions import ApplyError, RollbackError, SubjectNotFoundError
from profilesync.profile_sync.ports.authoritative_store_port import AuthoritativeStorePort
from profilesync.profile_sync.sections import get_section_handler
from profilesync.profile_sync.value_objects import RollbackSnapshot, UpdateOperation, UpdateResult
from profilesync.services.application.audit_trail_service import AuditTrailService
from profilesync.utils.uuid_utils import generate_operation_id

if TYPE_CHECKING:
    from profilesync.infra.worker_core.profile_sync.sync_worker import SyncWorker

log = get_logger("profilesync.services.optimistic_updater")


class OptimisticUpdater:
    """
    Applies a section change to the authoritative record and returns before
    any downstream system has seen it.

    Order per update: pre-image read, snapshot, write, audit append,
    hand-off to the sync worker. All five steps for one subject run under a
    per-subject asyncio.Lock, so the sync queue sees updates in write order.
    """

    def __init__(
        self,
        store: AuthoritativeStorePort,
        snapshots: RollbackSnapshotStore,
        audit: AuditTrailService,
        worker: 'SyncWorker',
        max_retries: int = 3,
    ):
        self._store = store
        self._snapshots = snapshots
        self._audit = audit
        self._worker = worker
        self._max_retries = max_retries
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _subject_lock(self, subject_id: str) -> asyncio.Lock:
        lock = self._locks.get(subject_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[subject_id] = lock
        return lock

    async def perform_update(
        self,
        subject_id: str,
        section: Union[Section, str],
        new_value: Any,
        actor_id: str,
    ) -> UpdateResult:
        """
        Apply one section change.

        Raises:
            ValidationError: unknown section or wrong value shape (nothing written)
            SubjectNotFoundError: subject does not exist (nothing written)
            ApplyError: pre-image read or authoritative write failed (nothing queued)
        """
        section = resolve_section(section)
        get_section_handler(section).validate(new_value)
        classification = classify(section)

        async with self._subject_lock(subject_id):
            try:
                previous_value = await self._store.read_section(subject_id, section)
            except SubjectNotFoundError:
                raise
            except Exception as e:
                metrics.apply_failures.labels(section=section.value).inc()
                raise ApplyError(subject_id, section.value, f"pre-image read failed: {e}") from e

            operation_id = generate_operation_id()
            self._snapshots.put(RollbackSnapshot(
                operation_id=operation_id,
                subject_id=subject_id,
                section=section,
                previous_value=previous_value,
                actor_id=actor_id,
            ))

            updated_value = get_section_handler(section).merge(previous_value, new_value)
            try:
                await self._store.write_section(subject_id, section, updated_value)
            except Exception as e:
                self._snapshots.remove(operation_id)
                metrics.apply_failures.labels(section=section.value).inc()
                log.error(
                    f"Authoritative write failed for {subject_id}/{section.value} ({operation_id}): {e}",
                    exc_info=True,
                )
                raise ApplyError(subject_id, section.value, str(e), operation_id=operation_id) from e

            # Enqueued under the lock so queue order matches write order
            operation = UpdateOperation(
                operation_id=operation_id,
                subject_id=subject_id,
                section=section,
                new_value=updated_value,
                previous_value=previous_value,
                actor_id=actor_id,
                max_retries=self._max_retries,
            )
            await self._audit.record_update(operation, classification)
            self._worker.submit(operation, classification)

        metrics.operations_submitted.labels(
            section=section.value, impact_level=classification.impact_level.value
        ).inc()

        log.info(
            f"Applied {section.value} update for {subject_id} by {actor_id} "
            f"({operation_id}, {classification.impact_level.value})"
        )
        return UpdateResult(operation_id=operation_id, updated_value=updated_value, rollback_available=True)

    async def rollback(self, operation_id: str) -> bool:
        """
        Restore the pre-image captured for operation_id.

        Returns False when no snapshot exists (unknown id or evicted).
        Raises RollbackError when the restorative write fails; the snapshot
        is kept so the rollback can be retried.
        """
        snapshot = self._snapshots.get(operation_id)
        if snapshot is None:
            metrics.rollbacks.labels(outcome="missing").inc()
            log.info(f"No rollback snapshot for {operation_id}")
            return False

        async with self._subject_lock(snapshot.subject_id):
            try:
                await self._store.write_section(snapshot.subject_id, snapshot.section, snapshot.previous_value)
            except Exception as e:
                metrics.rollbacks.labels(outcome="failed").inc()
                log.critical(
                    f"Rollback write failed for {operation_id} "
                    f"({snapshot.subject_id}/{snapshot.section.value}); "
                    f"authoritative record may be inconsistent: {e}",
                    exc_info=True,
                )
                raise RollbackError(operation_id, snapshot.subject_id, snapshot.section.value, str(e)) from e

        await self._audit.record_rollback(snapshot, classify(snapshot.section))
        self._snapshots.remove(operation_id)
        metrics.rollbacks.labels(outcome="applied").inc()
        log.info(f"Rolled back {operation_id} ({snapshot.subject_id}/{snapshot.section.value})")
        return True
