# =============================================================================
# File: profilesync/services/application/notification_fanout.py
# Description: Tells affected stakeholders about high-impact profile changes
# =============================================================================

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from profilesync.config.logging_config import get_logger
from profilesync.infra.metrics import profile_sync_metrics as metrics
from profilesync.profile_sync.enums import DeliveryStatus, NotificationStatus, Section
from profilesync.profile_sync.notification_templates import build_notification_payload, display_name
from profilesync.profile_sync.ports.authoritative_store_port import AuthoritativeStorePort
from profilesync.profile_sync.ports.notification_port import NotificationDeliveryPort
from profilesync.profile_sync.ports.stakeholder_port import StakeholderResolverPort
from profilesync.profile_sync.value_objects import ChangeClassification, NotificationRecord, UpdateOperation
from profilesync.services.application.audit_trail_service import AuditTrailService

log = get_logger("profilesync.notification_fanout")

DEFAULT_CHANNELS = ("websocket", "email")


def overall_status(records: List[NotificationRecord]) -> NotificationStatus:
    """Nobody affected counts as sent."""
    if not records:
        return NotificationStatus.SENT
    sent = sum(1 for r in records if r.status is DeliveryStatus.SENT)
    if sent == len(records):
        return NotificationStatus.SENT
    if sent == 0:
        return NotificationStatus.FAILED
    return NotificationStatus.PARTIAL


class NotificationFanout:
    """
    Best-effort, never retried. dispatch() does not raise: every failure
    ends up in the log and on the audit entry, and none of them touches
    propagation status.
    """

    def __init__(
        self,
        resolver: StakeholderResolverPort,
        delivery: NotificationDeliveryPort,
        audit: AuditTrailService,
        store: Optional[AuthoritativeStorePort] = None,
        channels: Sequence[str] = DEFAULT_CHANNELS,
        timeout_seconds: float = 10.0,
    ):
        self._resolver = resolver
        self._delivery = delivery
        self._audit = audit
        self._store = store
        self._channels = list(channels)
        self._timeout = timeout_seconds

    @property
    def channels(self) -> List[str]:
        return list(self._channels)

    async def dispatch(
        self,
        operation: UpdateOperation,
        classification: ChangeClassification,
    ) -> NotificationStatus:
        if not classification.requires_notification:
            return NotificationStatus.NOT_REQUIRED

        operation_id = operation.operation_id
        try:
            return await self._fan_out(operation)
        except Exception as e:
            log.error(f"Notification fanout failed for {operation_id}: {e}", exc_info=True)
            await self._audit.record_notifications(operation_id, [], NotificationStatus.FAILED)
            return NotificationStatus.FAILED

    async def _fan_out(self, operation: UpdateOperation) -> NotificationStatus:
        operation_id = operation.operation_id
        subject_id = operation.subject_id

        try:
            recipients = await asyncio.wait_for(
                self._resolver.affected_stakeholders(subject_id), timeout=self._timeout
            )
        except Exception as e:
            log.error(f"Stakeholder lookup failed for {subject_id} ({operation_id}): {e!r}")
            await self._audit.record_notifications(operation_id, [], NotificationStatus.FAILED)
            return NotificationStatus.FAILED

        payload = build_notification_payload(
            operation.section,
            operation.new_value,
            subject_id,
            operation_id,
            subject_name=await self._subject_name(subject_id),
        )

        results = await asyncio.gather(
            *(self._send_one(recipient, payload) for recipient in recipients),
            return_exceptions=True,
        )

        records: List[NotificationRecord] = []
        for recipient, result in zip(recipients, results):
            if isinstance(result, BaseException):
                error = f"{type(result).__name__}: {result}"
                log.warning(f"Notification to {recipient} failed for {operation_id}: {error}")
                delivered: Dict[str, bool] = {channel: False for channel in self._channels}
            else:
                error = None
                delivered = result
            for channel in self._channels:
                ok = bool(delivered.get(channel, False))
                records.append(NotificationRecord(
                    subject_id=subject_id,
                    operation_id=operation_id,
                    recipient_id=recipient,
                    channel=channel,
                    status=DeliveryStatus.SENT if ok else DeliveryStatus.FAILED,
                    error=None if ok else (error or f"{channel} delivery not confirmed"),
                ))
                metrics.notifications.labels(channel=channel, status="sent" if ok else "failed").inc()

        status = overall_status(records)
        await self._audit.record_notifications(operation_id, records, status)
        log.info(
            f"Notified {len(recipients)} stakeholders of {operation.section.value} change "
            f"for {subject_id} ({operation_id}): {status.value}"
        )
        return status

    async def _send_one(self, recipient_id: str, payload: Dict[str, Any]) -> Dict[str, bool]:
        return await asyncio.wait_for(
            self._delivery.send(recipient_id, payload, list(self._channels)), timeout=self._timeout
        )

    async def _subject_name(self, subject_id: str) -> Optional[str]:
        if self._store is None:
            return None
        try:
            return display_name(await self._store.read_section(subject_id, Section.PERSONAL_INFO))
        except Exception as e:
            log.debug(f"Could not read display name for {subject_id}: {e}")
            return None
