# =============================================================================
# File: profilesync/config/pg_client_config.py
# Description: Database configuration for the PostgreSQL audit store
# =============================================================================

from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from profilesync.common.base.base_config import BASE_CONFIG_DICT, BaseConfig


class DatabaseConfig(BaseConfig):
    """PostgreSQL configuration (PG_ prefix; DSN also read from POSTGRES_DSN)"""

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='PG_',
        populate_by_name=True,
    )

    main_dsn: Optional[str] = Field(
        default=None,
        alias="POSTGRES_DSN",
        description="Main database DSN"
    )

    # Pool configuration
    pool_min_size: int = Field(default=2, description="Pool min size")
    pool_max_size: int = Field(default=10, description="Pool max size")
    pool_timeout: float = Field(default=5.0, description="Pool acquisition timeout in seconds")
    pool_command_timeout: float = Field(default=10.0, description="Default command timeout")

    # Features
    run_schemas_on_startup: bool = Field(default=True)
    schema_file: str = Field(default="profilesync/database/profile_sync.sql")

    # Monitoring
    slow_query_threshold_ms: float = Field(default=1000.0)

    def to_asyncpg_params(self) -> Dict[str, Any]:
        return {
            "min_size": self.pool_min_size,
            "max_size": self.pool_max_size,
            "timeout": self.pool_timeout,
            "command_timeout": self.pool_command_timeout,
        }


@lru_cache(maxsize=1)
def get_database_config() -> DatabaseConfig:
    """Get database configuration singleton (cached)."""
    return DatabaseConfig()


def reset_database_config() -> None:
    """Reset config singleton (for testing)."""
    get_database_config.cache_clear()
