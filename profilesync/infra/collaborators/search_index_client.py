# =============================================================================
# File: profilesync/infra/collaborators/search_index_client.py
# Description: Search service client
# =============================================================================

from __future__ import annotations

from typing import Any, Dict

from profilesync.infra.collaborators.base_http_client import BaseHttpCollaborator


class HttpSearchIndexClient(BaseHttpCollaborator):
    """SearchIndexClientPort: PUT {search_service_url}/documents/{document_id}"""

    async def upsert(self, document_id: str, document: Dict[str, Any]) -> None:
        client = await self._get_client()
        url = f"{self._config.search_service_url.rstrip('/')}/documents/{document_id}"
        response = await client.put(url, json=document)
        response.raise_for_status()
