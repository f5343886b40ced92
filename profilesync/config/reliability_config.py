# =============================================================================
# File: profilesync/config/reliability_config.py
# Description: Retry configuration for downstream propagation and the
#              infrastructure clients (PostgreSQL, Redis, HTTP collaborators)
# =============================================================================

from enum import Enum, auto
from functools import lru_cache
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import SettingsConfigDict

from profilesync.common.base.base_config import BASE_CONFIG_DICT, BaseConfig


# =============================================================================
# Configuration Models
# =============================================================================

class RetryConfig(BaseModel):
    """Retry configuration."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    max_attempts: int = 3
    initial_delay_ms: int = 100
    max_delay_ms: int = 10000
    backoff_factor: float = 2.0
    jitter: bool = True
    jitter_type: str = "full"
    retry_condition: Optional[Callable[[Exception], bool]] = None


class ErrorClass(Enum):
    """Error classification for retry decisions"""
    UNKNOWN = auto()
    NETWORK = auto()
    TIMEOUT = auto()
    LOGICAL = auto()
    TRANSIENT = auto()


# =============================================================================
# Main Reliability Settings (loads from env)
# =============================================================================

class ReliabilitySettings(BaseConfig):
    """
    Global reliability settings loaded from environment.
    Individual retry configs are created via the ReliabilityConfigs factory.
    """

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='RELIABILITY_',
    )

    sync_initial_delay_ms: int = Field(default=500)
    sync_max_delay_ms: int = Field(default=30000)
    sync_backoff_factor: float = Field(default=2.0)
    sync_jitter_type: str = Field(default="equal")


@lru_cache(maxsize=1)
def get_reliability_settings() -> ReliabilitySettings:
    """Get global reliability settings (cached)."""
    return ReliabilitySettings()


def reset_reliability_settings() -> None:
    """Reset settings singleton (for testing)."""
    get_reliability_settings.cache_clear()


# =============================================================================
# ReliabilityConfigs Factory Class
# =============================================================================

class ReliabilityConfigs:
    """Pre-configured retry settings for different services"""

    # =========================================================================
    # Downstream propagation
    # =========================================================================
    @staticmethod
    def sync_propagation_retry(max_attempts: int = 3) -> RetryConfig:
        """
        Backoff between propagation attempts of one sync operation.

        max_attempts mirrors PROFILE_SYNC_MAX_RETRIES; the worker owns the
        attempt loop and only uses the delay schedule.
        """
        settings = get_reliability_settings()
        return RetryConfig(
            max_attempts=max_attempts,
            initial_delay_ms=settings.sync_initial_delay_ms,
            max_delay_ms=settings.sync_max_delay_ms,
            backoff_factor=settings.sync_backoff_factor,
            jitter=True,
            jitter_type=settings.sync_jitter_type,
        )

    # =========================================================================
    # PostgreSQL
    # =========================================================================
    @staticmethod
    def postgres_retry() -> RetryConfig:
        return RetryConfig(
            max_attempts=3,
            initial_delay_ms=100,
            max_delay_ms=5000,
            backoff_factor=2.0,
            jitter=True,
            retry_condition=ReliabilityConfigs._should_retry_postgres,
        )

    # =========================================================================
    # Redis
    # =========================================================================
    @staticmethod
    def redis_retry() -> RetryConfig:
        return RetryConfig(
            max_attempts=3,
            initial_delay_ms=50,
            max_delay_ms=1000,
            backoff_factor=2.0,
            jitter=True,
            retry_condition=ReliabilityConfigs._should_retry_redis,
        )

    # =========================================================================
    # HTTP collaborators (stakeholder lookup)
    # =========================================================================
    @staticmethod
    def http_collaborator_retry() -> RetryConfig:
        return RetryConfig(
            max_attempts=2,
            initial_delay_ms=100,
            max_delay_ms=1000,
            backoff_factor=2.0,
            jitter=True,
            retry_condition=ReliabilityConfigs._should_retry_http,
        )

    # =========================================================================
    # Error Classification
    # =========================================================================
    @staticmethod
    def classify_error(error: Exception) -> ErrorClass:
        if error is None:
            return ErrorClass.UNKNOWN
        error_str = str(error).lower()

        if any(term in error_str for term in ["connection refused", "no such host", "network is unreachable", "broken pipe"]):
            return ErrorClass.NETWORK
        if any(term in error_str for term in ["timeout", "timed out", "deadline exceeded"]):
            return ErrorClass.TIMEOUT
        if any(term in error_str for term in ["syntax error", "invalid", "constraint", "wrongtype"]):
            return ErrorClass.LOGICAL
        if any(term in error_str for term in ["deadlock", "too many connections", "temporary"]):
            return ErrorClass.TRANSIENT
        return ErrorClass.UNKNOWN

    @staticmethod
    def should_retry_error(error: Exception) -> bool:
        error_class = ReliabilityConfigs.classify_error(error)
        return error_class in [ErrorClass.NETWORK, ErrorClass.TIMEOUT, ErrorClass.TRANSIENT, ErrorClass.UNKNOWN]

    @staticmethod
    def _should_retry_redis(error: Exception) -> bool:
        if error is None:
            return False
        error_str = str(error)
        if any(term in error_str for term in ["WRONGTYPE", "ERR invalid", "ERR syntax"]):
            return False
        return ReliabilityConfigs.should_retry_error(error)

    @staticmethod
    def _should_retry_postgres(error: Exception) -> bool:
        if error is None:
            return False
        error_str = str(error)
        if "deadlock detected" in error_str:
            return True
        if any(term in error_str for term in ["syntax error", "violates unique constraint", "violates foreign key", "violates check constraint"]):
            return False
        return ReliabilityConfigs.should_retry_error(error)

    @staticmethod
    def _should_retry_http(error: Exception) -> bool:
        if error is None:
            return False
        error_str = str(error).lower()
        if any(term in error_str for term in ["401", "403", "404", "unauthorized", "forbidden"]):
            return False
        if any(term in error_str for term in ["429", "rate limit", "too many requests", "502", "503", "504"]):
            return True
        return ReliabilityConfigs.should_retry_error(error)
