"""
Shared configuration management for the Bridge Gateway.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias="BRIDGE_ENV")
    log_level: str = Field(default="info", validation_alias="BRIDGE_LOG_LEVEL")
    build_id: str = Field(default="abp-2025-11-04", validation_alias="BRIDGE_BUILD_ID")

    # Upstream bridge
    bridge_url: str = Field(default="", validation_alias="GAS_URL")
    bridge_token: str = Field(default="", validation_alias="GAS_TOKEN")
    bridge_timeout_seconds: float = Field(default=10.0, validation_alias="BRIDGE_TIMEOUT_SECONDS")
    status_timeout_seconds: float = Field(default=8.0, validation_alias="BRIDGE_STATUS_TIMEOUT_SECONDS")
    bundle_concurrency: int = Field(default=4, ge=1, validation_alias="BRIDGE_BUNDLE_CONCURRENCY")

    # Registry document
    registry_path: str = Field(default="registry.json", validation_alias="BRIDGE_REGISTRY_PATH")

    # Security
    proxy_key: str = Field(default="", validation_alias="PROXY_KEY")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "bridge"
    port: int = Field(default=8080, validation_alias="PORT")
    host: str = "0.0.0.0"


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
