# =============================================================================
# File: profilesync/profile_sync/ports/notification_port.py
# Description: Port interface for notification delivery
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Protocol, runtime_checkable


@runtime_checkable
class NotificationDeliveryPort(Protocol):
    """
    Port: Notification Delivery

    Defined by: Profile Sync Domain
    Implemented by: HttpNotificationDelivery (profilesync/infra/collaborators/notification_delivery.py)
    """

    async def send(
        self,
        recipient_id: str,
        payload: Dict[str, Any],
        channels: List[str],
    ) -> Dict[str, bool]:
        """
        Deliver one payload to one recipient.

        Returns:
            Per-channel delivery status (channel -> delivered)
        """
        ...
