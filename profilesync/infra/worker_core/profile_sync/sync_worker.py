# =============================================================================
# File: profilesync/infra/worker_core/profile_sync/sync_worker.py
# Description: Propagates committed profile changes to downstream systems
# =============================================================================

"""
Sync Worker

One asyncio consumer task per subject with pending work:
- created by submit(), exits when the subject's queue drains
- operations of one subject run strictly one at a time, in queue order
- a global semaphore bounds how many subjects propagate concurrently

Each attempt walks the classified systems in table order and stops at the
first failure. A failed attempt re-queues the whole operation at the tail
of the subject's queue with exponential backoff until max_retries is
reached; the operation then fails terminally and stays failed.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Set

from profilesync.config.logging_config import get_logger
from profilesync.config.reliability_config import RetryConfig, ReliabilityConfigs
from profilesync.infra.metrics import profile_sync_metrics as metrics
from profilesync.infra.reliability.retry import calculate_delay_ms
from profilesync.infra.worker_core.profile_sync.sync_queue import SyncQueue
from profilesync.profile_sync.enums import DownstreamSystem, OperationStatus
from profilesync.profile_sync.exceptions import ExhaustedRetriesError, PropagationError
from profilesync.profile_sync.ports.downstream_sync_port import DownstreamSyncPort
from profilesync.profile_sync.value_objects import (
    ChangeClassification,
    SyncAttempt,
    SyncOperation,
    UpdateOperation,
    utc_now,
)

if TYPE_CHECKING:
    from profilesync.services.application.audit_trail_service import AuditTrailService
    from profilesync.services.application.notification_fanout import NotificationFanout

log = get_logger("profilesync.sync_worker")


class SyncWorker:
    """Asynchronous propagation of update operations"""

    def __init__(
        self,
        adapters: Iterable[DownstreamSyncPort],
        audit: 'AuditTrailService',
        fanout: Optional['NotificationFanout'] = None,
        *,
        adapter_timeout_seconds: float = 10.0,
        max_concurrent_subjects: int = 16,
        retry_config: Optional[RetryConfig] = None,
        queue: Optional[SyncQueue] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._adapters: Dict[DownstreamSystem, DownstreamSyncPort] = {a.system: a for a in adapters}
        self._audit = audit
        self._fanout = fanout
        self._adapter_timeout = adapter_timeout_seconds
        self._max_concurrent_subjects = max_concurrent_subjects
        self._retry_config = retry_config or ReliabilityConfigs.sync_propagation_retry()
        self._queue = queue if queue is not None else SyncQueue()
        self._clock = clock

        self._semaphore: Optional[asyncio.Semaphore] = None
        self._consumers: Dict[str, asyncio.Task] = {}
        self._fanout_tasks: Set[asyncio.Task] = set()
        # operation_id -> queue entry, until pruned after reaching a terminal status
        self._operations: Dict[str, SyncOperation] = {}
        self._running = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        if self._running:
            log.warning("Sync worker already running")
            return

        self._semaphore = asyncio.Semaphore(self._max_concurrent_subjects)
        self._running = True
        for subject_id in self._queue.subjects():
            self._ensure_consumer(subject_id)
        log.info(
            f"Sync worker started ({len(self._adapters)} adapters, "
            f"{self._queue.depth()} queued operations)"
        )

    async def stop(self) -> None:
        """Cancel consumers; queued operations stay queued (and in the audit trail)."""
        self._running = False
        tasks = list(self._consumers.values()) + list(self._fanout_tasks)
        for task in tasks:
            if not task.done():
                task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                log.error(f"Sync worker task ended with error during stop: {e}", exc_info=True)
        self._consumers.clear()
        self._fanout_tasks.clear()
        log.info(f"Sync worker stopped ({self._queue.depth()} operations left queued)")

    async def join(self, timeout: Optional[float] = None) -> None:
        """Wait until every subject queue and every notification fanout is idle."""
        async def _drain():
            while True:
                pending = [t for t in list(self._consumers.values()) + list(self._fanout_tasks) if not t.done()]
                if not pending:
                    return
                await asyncio.wait(pending)

        await asyncio.wait_for(_drain(), timeout=timeout)

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(self, operation: UpdateOperation, classification: ChangeClassification) -> SyncOperation:
        """Queue an operation without waiting for it. Safe before start()."""
        sync_op = SyncOperation.create(operation, classification)
        self._operations[operation.operation_id] = sync_op
        depth = self._queue.enqueue(sync_op)
        metrics.queue_depth.set(self._queue.depth())
        log.debug(f"Queued {operation.operation_id} for {operation.subject_id} (subject depth {depth})")
        if self._running:
            self._ensure_consumer(operation.subject_id)
        return sync_op

    def _ensure_consumer(self, subject_id: str) -> None:
        if subject_id in self._consumers:
            return
        self._consumers[subject_id] = asyncio.get_running_loop().create_task(
            self._consume(subject_id), name=f"sync-consumer-{subject_id}"
        )

    # =========================================================================
    # Processing
    # =========================================================================

    async def _consume(self, subject_id: str) -> None:
        try:
            while self._running:
                sync_op = self._queue.peek(subject_id)
                if sync_op is None:
                    break
                wait = sync_op.not_before - self._clock()
                if wait > 0:
                    await asyncio.sleep(wait)
                    continue
                self._queue.pop(subject_id)
                metrics.queue_depth.set(self._queue.depth())
                try:
                    async with self._semaphore:
                        await self.process(sync_op)
                except asyncio.CancelledError:
                    self._restore(sync_op)
                    raise
        finally:
            # No await between the empty peek above and this removal
            self._consumers.pop(subject_id, None)

    def _restore(self, sync_op: SyncOperation) -> None:
        """Re-queue an operation whose attempt was cut short by stop()."""
        operation = sync_op.operation
        if operation.status.is_terminal or self._queue.contains(sync_op):
            return
        operation.status = OperationStatus.QUEUED
        self._queue.push_front(sync_op)
        metrics.queue_depth.set(self._queue.depth())
        log.info(
            f"Interrupted attempt of {operation.operation_id} re-queued at the head of {operation.subject_id}"
        )

    async def process(self, sync_op: SyncOperation) -> OperationStatus:
        """Run one propagation attempt; returns the operation's resulting status."""
        operation = sync_op.operation
        operation_id = operation.operation_id
        attempt = sync_op.begin_attempt()
        await self._audit.mark_processing(operation_id, attempt)

        if sync_op.classification.requires_notification and not operation.notification_dispatched:
            operation.notification_dispatched = True
            self._dispatch_fanout(sync_op)

        for entry in sync_op.systems:
            error = await self._apply(operation, entry.system)
            if error is not None:
                entry.mark_failed(error.reason)
                return await self._handle_failure(sync_op, attempt, error)
            entry.mark_updated()

        operation.status = OperationStatus.COMPLETED
        operation.completed_at = utc_now()
        operation.last_error = None
        await self._audit.mark_completed(operation_id, attempt, sync_op.systems)
        metrics.operations_finished.labels(status=OperationStatus.COMPLETED.value).inc()
        log.info(
            f"Sync operation {operation_id} completed "
            f"({operation.section.value}, attempt {attempt}, retries {operation.retry_count})"
        )
        return operation.status

    async def _apply(self, operation: UpdateOperation, system: DownstreamSystem) -> Optional[PropagationError]:
        adapter = self._adapters.get(system)
        if adapter is None:
            metrics.propagation_attempts.labels(system=system.value, outcome="missing_adapter").inc()
            return PropagationError(operation.operation_id, system.value, "no adapter registered")

        started = time.monotonic()
        try:
            await asyncio.wait_for(
                adapter.apply(operation.subject_id, operation.section, operation.new_value),
                timeout=self._adapter_timeout,
            )
        except asyncio.TimeoutError:
            reason = f"timed out after {self._adapter_timeout}s"
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
        else:
            metrics.adapter_latency.labels(system=system.value).observe(time.monotonic() - started)
            metrics.propagation_attempts.labels(system=system.value, outcome="updated").inc()
            return None

        metrics.propagation_attempts.labels(system=system.value, outcome="failed").inc()
        return PropagationError(operation.operation_id, system.value, reason)

    async def _handle_failure(self, sync_op: SyncOperation, attempt: int, error: PropagationError) -> OperationStatus:
        operation = sync_op.operation
        operation_id = operation.operation_id
        operation.retry_count += 1
        operation.last_error = f"{error.system}: {error.reason}"

        await self._audit.record_failed_attempt(
            operation_id,
            SyncAttempt(attempt=attempt, retry_count=operation.retry_count, error=str(error),
                        failed_system=error.system),
            sync_op.systems,
        )

        if operation.retries_remaining:
            delay_ms = calculate_delay_ms(self._retry_config, operation.retry_count)
            sync_op.not_before = self._clock() + delay_ms / 1000
            operation.status = OperationStatus.QUEUED
            await self._audit.mark_retry_scheduled(operation_id)
            self._queue.requeue(sync_op)
            metrics.retries_scheduled.labels(system=error.system).inc()
            metrics.queue_depth.set(self._queue.depth())
            log.warning(
                f"{error} (retry {operation.retry_count}/{operation.max_retries} "
                f"in {delay_ms / 1000:.2f}s)"
            )
            return operation.status

        exhausted = ExhaustedRetriesError(operation_id, operation.retry_count, operation.last_error)
        operation.status = OperationStatus.FAILED
        operation.completed_at = utc_now()
        await self._audit.mark_failed(operation_id, attempt, sync_op.systems, str(exhausted))
        metrics.operations_finished.labels(status=OperationStatus.FAILED.value).inc()
        log.error(str(exhausted))
        return operation.status

    def _dispatch_fanout(self, sync_op: SyncOperation) -> None:
        if self._fanout is None:
            return
        task = asyncio.get_running_loop().create_task(
            self._fanout.dispatch(sync_op.operation, sync_op.classification),
            name=f"notify-{sync_op.operation_id}",
        )
        self._fanout_tasks.add(task)
        task.add_done_callback(self._fanout_done)

    def _fanout_done(self, task: asyncio.Task) -> None:
        self._fanout_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log.error(f"Notification task {task.get_name()} failed: {task.exception()}")

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_operation(self, operation_id: str) -> Optional[SyncOperation]:
        return self._operations.get(operation_id)

    def prune_finished(self) -> int:
        """Forget terminal operations; the audit trail keeps their history."""
        finished = [op_id for op_id, s in self._operations.items() if s.operation.status.is_terminal]
        for op_id in finished:
            del self._operations[op_id]
        return len(finished)

    def operations_by_status(self) -> Dict[str, int]:
        counts = Counter(s.operation.status.value for s in self._operations.values())
        return {status.value: counts.get(status.value, 0) for status in OperationStatus}

    @property
    def queue(self) -> SyncQueue:
        return self._queue

    @property
    def queue_depth(self) -> int:
        return self._queue.depth()

    @property
    def in_flight_subjects(self) -> int:
        return len(self._consumers)

    @property
    def active_operations(self) -> int:
        return sum(1 for s in self._operations.values() if not s.operation.status.is_terminal)

    @property
    def systems(self) -> List[DownstreamSystem]:
        return list(self._adapters)
