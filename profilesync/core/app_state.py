# =============================================================================
# File: profilesync/core/app_state.py
# Description: Application state definition
# =============================================================================

from datetime import datetime, timezone
from typing import Any, List, Optional

import redis.asyncio as redis

from profilesync.infra.persistence.memory_profile_store import InMemoryProfileStore
from profilesync.services.application.profile_sync_service import ProfileSyncService

_start_time = datetime.now(timezone.utc)


# =============================================================================
# APP STATE TYPE DEFINITION
# =============================================================================
class AppState:
    """Type definition for FastAPI app.state with proper type hints"""

    def __init__(self):
        # Engine
        self.profile_sync_service: Optional[ProfileSyncService] = None
        self.profile_store: Optional[InMemoryProfileStore] = None

        # Infrastructure
        self.redis_client: Optional[redis.Redis] = None
        self.postgres_enabled: bool = False

        # HTTP collaborators and adapters owning a client (closed on shutdown)
        self.closeables: List[Any] = []


def get_start_time() -> datetime:
    return _start_time
