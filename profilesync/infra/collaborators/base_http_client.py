# =============================================================================
# File: profilesync/infra/collaborators/base_http_client.py
# Description: Shared lazily-created httpx client for internal service calls
# =============================================================================

from __future__ import annotations

from typing import Optional

import httpx

from profilesync.config.integration_config import IntegrationConfig


class BaseHttpCollaborator:
    """
    Owns an httpx.AsyncClient unless one is injected (tests pass a client
    built on httpx.MockTransport; the application may share one pool).
    """

    def __init__(self, config: IntegrationConfig, client: Optional[httpx.AsyncClient] = None):
        self._config = config
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.service_timeout_seconds,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None
