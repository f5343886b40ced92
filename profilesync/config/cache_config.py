# =============================================================================
# File: profilesync/config/cache_config.py
# Description: Redis profile cache configuration
# =============================================================================

from functools import lru_cache

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from profilesync.common.base.base_config import BASE_CONFIG_DICT, BaseConfig


class CacheConfig(BaseConfig):
    """Cached read model of subject profiles (CACHE_ prefix)"""

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='CACHE_',
    )

    enabled: bool = Field(default=True)
    redis_url: str = Field(default="redis://localhost:6379/0")
    key_prefix: str = Field(default="profilesync:profile")
    profile_ttl_seconds: int = Field(default=3600, ge=1)
    socket_timeout_seconds: float = Field(default=5.0)
    max_connections: int = Field(default=50)

    def profile_key(self, subject_id: str) -> str:
        return f"{self.key_prefix}:{subject_id}"


@lru_cache(maxsize=1)
def get_cache_config() -> CacheConfig:
    """Get cache configuration singleton (cached)."""
    return CacheConfig()


def reset_cache_config() -> None:
    """Reset config singleton (for testing)."""
    get_cache_config.cache_clear()
