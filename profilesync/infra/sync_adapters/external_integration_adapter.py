# =============================================================================
# File: profilesync/infra/sync_adapters/external_integration_adapter.py
# Description: Signed webhook to the external integration endpoint
# =============================================================================

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Any, Optional

import httpx

from profilesync.config.integration_config import IntegrationConfig
from profilesync.profile_sync.enums import DownstreamSystem, Section
from profilesync.profile_sync.value_objects import utc_now
from profilesync.utils.content_hash import content_hash

log = logging.getLogger("profilesync.sync_adapters.external")

EVENT_TYPE = "subject.section_updated"
SIGNATURE_HEADER = "X-ProfileSync-Signature"
IDEMPOTENCY_HEADER = "Idempotency-Key"


def sign_body(secret: str, body: bytes) -> str:
    return "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


class WebhookIntegrationAdapter:
    """
    External consumer. The idempotency key is the hash of
    (subject, section, value), so a retried delivery carries the same key.
    """

    system = DownstreamSystem.EXTERNAL

    def __init__(self, config: IntegrationConfig, client: Optional[httpx.AsyncClient] = None):
        self._config = config
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.webhook_timeout_seconds,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def apply(self, subject_id: str, section: Section, value: Any) -> None:
        if not self._config.is_webhook_configured():
            raise RuntimeError("External integration webhook URL is not configured")

        idempotency_key = content_hash(subject_id, section.value, value)
        body = json.dumps({
            "event_type": EVENT_TYPE,
            "subject_id": subject_id,
            "section": section.value,
            "value": value,
            "occurred_at": utc_now().isoformat(),
        }, default=str).encode("utf-8")

        headers = {"Content-Type": "application/json", IDEMPOTENCY_HEADER: idempotency_key}
        secret = self._config.get_signing_secret()
        if secret:
            headers[SIGNATURE_HEADER] = sign_body(secret, body)

        client = await self._get_client()
        response = await client.post(self._config.webhook_url, content=body, headers=headers)
        response.raise_for_status()
        log.debug(f"Webhook delivered for {subject_id}/{section.value}: {response.status_code}")
