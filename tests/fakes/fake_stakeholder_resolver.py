# =============================================================================
# File: tests/fakes/fake_stakeholder_resolver.py
# Description: Fake implementations of StakeholderResolverPort and
#              NotificationDeliveryPort for unit testing
# Pattern: Ports & Adapters - Fake/Stub adapter
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Set

from tests.fakes.call_recorder import CallRecorder


class FakeStakeholderResolver(CallRecorder):
    """
    Usage:
        resolver = FakeStakeholderResolver()
        resolver.set_stakeholders("subject-1", ["client-1", "client-2"])
    """

    def __init__(self):
        super().__init__()
        self.stakeholders: Dict[str, List[str]] = {}

    def set_stakeholders(self, subject_id: str, recipients: List[str]) -> None:
        self.stakeholders[subject_id] = list(recipients)

    async def affected_stakeholders(self, subject_id: str) -> List[str]:
        self._record_call("affected_stakeholders", subject_id)
        await self._before("affected_stakeholders")
        return list(self.stakeholders.get(subject_id, []))


class FakeNotificationDelivery(CallRecorder):
    """
    Delivers on every requested channel unless a recipient or a
    (recipient, channel) pair is configured to fail.
    """

    def __init__(self):
        super().__init__()
        self.failing_recipients: Set[str] = set()
        self.failing_channels: Set[tuple] = set()
        self.delivered: List[Dict[str, Any]] = []

    def fail_recipient(self, recipient_id: str) -> None:
        """send() raises for this recipient."""
        self.failing_recipients.add(recipient_id)

    def fail_channel(self, recipient_id: str, channel: str) -> None:
        """send() reports this channel as not delivered."""
        self.failing_channels.add((recipient_id, channel))

    async def send(self, recipient_id: str, payload: Dict[str, Any], channels: List[str]) -> Dict[str, bool]:
        self._record_call("send", recipient_id, payload, channels)
        await self._before("send")
        if recipient_id in self.failing_recipients:
            raise ConnectionError(f"notification service refused {recipient_id}")
        result = {channel: (recipient_id, channel) not in self.failing_channels for channel in channels}
        self.delivered.append({"recipient_id": recipient_id, "payload": payload, "result": result})
        return result
