# =============================================================================
# File: profilesync/infra/collaborators/notification_delivery.py
# Description: Hands notifications to the notification service
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, List

from profilesync.infra.collaborators.base_http_client import BaseHttpCollaborator

log = logging.getLogger("profilesync.collaborators.notifications")


class HttpNotificationDelivery(BaseHttpCollaborator):
    """
    NotificationDeliveryPort over HTTP. Never retried.

    POST {notification_service_url}/notifications
    body: {"recipient_id", "payload", "channels"}
    response: {"channels": {"websocket": true, "email": false}}
    A channel missing from the response counts as not delivered.
    """

    async def send(self, recipient_id: str, payload: Dict[str, Any], channels: List[str]) -> Dict[str, bool]:
        client = await self._get_client()
        response = await client.post(
            self._config.notifications_url,
            json={"recipient_id": recipient_id, "payload": payload, "channels": channels},
        )
        response.raise_for_status()
        reported = response.json().get("channels", {})
        return {channel: bool(reported.get(channel, False)) for channel in channels}
