# =============================================================================
# File: profilesync/config/integration_config.py
# Description: HTTP collaborators: external integration webhook, stakeholder
#              lookup, notification, search index and booking services
# =============================================================================

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from profilesync.common.base.base_config import BASE_CONFIG_DICT, BaseConfig
from profilesync.config.logging_config import get_logger

log = get_logger("profilesync.config.integrations")


class IntegrationConfig(BaseConfig):
    """Outbound HTTP endpoints (INTEGRATIONS_ prefix)"""

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='INTEGRATIONS_',
    )

    # External integration webhook
    webhook_url: Optional[str] = Field(default=None, description="Receives subject change events")
    webhook_signing_secret: SecretStr = Field(default=SecretStr(""), description="HMAC-SHA256 key")
    webhook_timeout_seconds: float = Field(default=10.0)

    # Internal services
    stakeholder_service_url: str = Field(default="http://localhost:8001")
    notification_service_url: str = Field(default="http://localhost:8002")
    search_service_url: str = Field(default="http://localhost:8003")
    booking_service_url: str = Field(default="http://localhost:8004")
    service_timeout_seconds: float = Field(default=5.0)

    @property
    def stakeholders_url_template(self) -> str:
        return f"{self.stakeholder_service_url.rstrip('/')}/subjects/{{subject_id}}/stakeholders"

    @property
    def notifications_url(self) -> str:
        return f"{self.notification_service_url.rstrip('/')}/notifications"

    def get_signing_secret(self) -> str:
        """Get signing secret as plain string"""
        return self.webhook_signing_secret.get_secret_value()

    def is_webhook_configured(self) -> bool:
        return bool(self.webhook_url)


@lru_cache(maxsize=1)
def get_integration_config() -> IntegrationConfig:
    """Get integration configuration singleton (cached)."""
    config = IntegrationConfig()
    if not config.is_webhook_configured():
        log.warning("External integration webhook not configured. 'external' propagation will fail.")
    return config


def reset_integration_config() -> None:
    """Reset config singleton (for testing)."""
    get_integration_config.cache_clear()
