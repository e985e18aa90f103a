"""
Shared configuration management for the Store Services credential layer.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


TOKEN_ENDPOINT_TEMPLATE = "https://login.microsoftonline.com/{tenant_id}/oauth2/token"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="STORE_",
        case_sensitive=False,
        extra="allow"
    )

    # Logging
    log_level: str = Field(default="info")

    # Outbound HTTP
    http_timeout: float = Field(default=10.0)


class StoreAuthConfig(BaseConfig):
    """Client-credentials settings for the AAD application of the service."""

    tenant_id: str = Field(default="")
    client_id: str = Field(default="")
    client_secret: str = Field(default="")
    token_endpoint_template: str = Field(default=TOKEN_ENDPOINT_TEMPLATE)


def get_config(**overrides) -> StoreAuthConfig:
    """Get credential layer configuration."""
    return StoreAuthConfig(**overrides)
