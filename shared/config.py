"""
Shared configuration management for the Agent Tools Gateway.

Settings are read once from the environment (and an optional ``.env`` file)
when the service starts. The resulting object is frozen and handed to every
provider adapter; nothing mutates it at runtime.
"""

from typing import Dict, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Per-provider timeouts (seconds) that differ from the default.
DEFAULT_PROVIDER_TIMEOUTS: Dict[str, float] = {
    "wttr": 5.0,
    "wttr-heuristic": 5.0,
    "numverify": 5.0,
    "nvd": 10.0,
    "tls": 6.0,
    "ping": 10.0,
}


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias=AliasChoices("TOOLS_ENV", "env"))
    log_level: str = Field(default="info", validation_alias=AliasChoices("TOOLS_LOG_LEVEL", "log_level"))

    # Listener
    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("TOOLS_HOST", "host"))
    port: int = Field(default=3100, validation_alias=AliasChoices("PORT", "TOOLS_PORT", "port"))


class GatewayConfig(BaseConfig):
    """Gateway configuration: outbound identity, credentials and timeouts."""

    service_name: str = "gateway"

    # Outbound identity
    user_agent: str = Field(
        default="AgentToolsGateway/1.0",
        validation_alias=AliasChoices("TOOLS_USER_AGENT", "user_agent"),
    )
    search_user_agent: str = Field(
        default="Mozilla/5.0",
        validation_alias=AliasChoices("TOOLS_SEARCH_USER_AGENT", "search_user_agent"),
    )

    # Optional upstream credentials
    numverify_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("NUMVERIFY_API_KEY", "numverify_api_key"),
    )
    nasa_api_key: str = Field(
        default="DEMO_KEY",
        validation_alias=AliasChoices("NASA_API_KEY", "nasa_api_key"),
    )

    # Provider calls
    default_timeout_seconds: float = Field(
        default=8.0,
        gt=0,
        validation_alias=AliasChoices("TOOLS_DEFAULT_TIMEOUT_SECONDS", "default_timeout_seconds"),
    )
    provider_timeouts: Dict[str, float] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("TOOLS_PROVIDER_TIMEOUTS", "provider_timeouts"),
    )
    max_search_results: int = Field(
        default=20,
        ge=1,
        validation_alias=AliasChoices("TOOLS_MAX_SEARCH_RESULTS", "max_search_results"),
    )

    def timeout_for(self, provider: str) -> float:
        """Resolve the call timeout for a provider name."""
        if provider in self.provider_timeouts:
            return self.provider_timeouts[provider]
        return DEFAULT_PROVIDER_TIMEOUTS.get(provider, self.default_timeout_seconds)

    def has_credential(self, name: str) -> bool:
        """True when an optional upstream credential is configured and non-blank."""
        value = getattr(self, name, None)
        return bool(value and str(value).strip())


def get_config(**overrides) -> GatewayConfig:
    """Build the gateway configuration from the environment."""
    return GatewayConfig(**overrides)
