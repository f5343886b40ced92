# =============================================================================
# File: profilesync/profile_sync/ports/search_index_client_port.py
# Description: Port interface for the provider search index
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class SearchIndexClientPort(Protocol):
    """
    Port: Search Index Client

    Defined by: Profile Sync Domain
    Used by: SearchIndexSyncAdapter
    Implemented by: HttpSearchIndexClient (profilesync/infra/collaborators/search_index_client.py)
    """

    async def upsert(self, document_id: str, document: Dict[str, Any]) -> None:
        """Create or fully replace one search document."""
        ...
