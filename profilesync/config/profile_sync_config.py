# =============================================================================
# File: profilesync/config/profile_sync_config.py
# Description: Profile sync engine configuration
# =============================================================================

from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from profilesync.common.base.base_config import BASE_CONFIG_DICT, BaseConfig


class AuditBackend(str, Enum):
    MEMORY = "memory"
    POSTGRES = "postgres"


class ProfileSyncConfig(BaseConfig):
    """
    Engine settings (PROFILE_SYNC_ prefix).

    Example .env:
        PROFILE_SYNC_MAX_RETRIES=5
        PROFILE_SYNC_NOTIFICATION_CHANNELS='["websocket"]'
        PROFILE_SYNC_AUDIT_BACKEND=postgres
        PROFILE_SYNC_SEED_FILE=/etc/profile-sync/profiles.json
    """

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='PROFILE_SYNC_',
    )

    # Propagation
    max_retries: int = Field(default=3, ge=1, description="Propagation attempts before terminal failure")
    adapter_timeout_seconds: float = Field(default=10.0, gt=0, description="Per-adapter call bound")
    max_concurrent_subjects: int = Field(default=16, ge=1, description="Subjects propagated in parallel")

    # Rollback snapshots
    snapshot_retention_seconds: float = Field(default=3600.0, gt=0)
    snapshot_cleanup_interval_seconds: float = Field(default=300.0, gt=0)

    # Notifications
    notification_timeout_seconds: float = Field(default=10.0, gt=0)
    notification_channels: List[str] = Field(default_factory=lambda: ["websocket", "email"])

    # Startup
    recover_on_startup: bool = Field(default=True, description="Re-seed queue from unfinished audit entries")
    audit_backend: AuditBackend = Field(default=AuditBackend.MEMORY)
    seed_file: Optional[str] = Field(default=None, description="JSON file of subject id -> profile loaded into the store")

    @field_validator("notification_channels")
    @classmethod
    def _channels_not_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one notification channel is required")
        return value


@lru_cache(maxsize=1)
def get_profile_sync_config() -> ProfileSyncConfig:
    """Get profile sync configuration singleton (cached)."""
    return ProfileSyncConfig()


def reset_profile_sync_config() -> None:
    """Reset config singleton (for testing)."""
    get_profile_sync_config.cache_clear()
