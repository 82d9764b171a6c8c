"""
Shared configuration management for the Kubernetes service exporter.
"""

import os
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_KUBECONFIG = os.path.join(os.path.expanduser("~"), ".kube", "config")


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Logging
    log_level: str = Field(default="info", alias="EXPORTER_LOG_LEVEL")

    # HTTP
    host: str = Field(default="0.0.0.0", alias="EXPORTER_HOST")
    port: int = Field(default=8080, alias="EXPORTER_PORT")


class ExporterConfig(BaseConfig):
    """Exporter-specific configuration."""

    # Kubernetes connection
    use_local: str = Field(default="", alias="USE_LOCAL")
    kubeconfig: Optional[str] = Field(default=None, alias="KUBECONFIG")
    request_timeout_seconds: int = Field(default=60, alias="EXPORTER_REQUEST_TIMEOUT_SECONDS")

    # Cache synchronization
    cache_sync_timeout_seconds: float = Field(default=30.0, alias="EXPORTER_CACHE_SYNC_TIMEOUT_SECONDS")
    resync_period_seconds: float = Field(default=300.0, alias="EXPORTER_RESYNC_PERIOD_SECONDS")
    watch_timeout_seconds: int = Field(default=300, alias="EXPORTER_WATCH_TIMEOUT_SECONDS")

    # Backoff between failed list/watch attempts
    retry_base_delay_seconds: float = Field(default=1.0, alias="EXPORTER_RETRY_BASE_DELAY_SECONDS")
    retry_max_delay_seconds: float = Field(default=60.0, alias="EXPORTER_RETRY_MAX_DELAY_SECONDS")

    @property
    def out_of_cluster(self) -> bool:
        """Any non-empty USE_LOCAL value selects kubeconfig mode."""
        return self.use_local != ""

    @property
    def kubeconfig_path(self) -> str:
        return self.kubeconfig or DEFAULT_KUBECONFIG


def get_config(**overrides) -> ExporterConfig:
    """Get exporter configuration, applying explicit overrides on top of the environment."""
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return ExporterConfig(**overrides)
