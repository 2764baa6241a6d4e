"""Configuration management for ephemeral-containers.

A single Settings class reads the environment once and exposes both flat
fields and grouped views.

Usage:
    from ephemeral_containers.config import Settings

    settings = Settings()

    # Grouped access
    settings.docker.endpoint
    settings.wait.timeout

    # Flat access
    settings.docker_host
    settings.wait_timeout

Settings is never instantiated at import time. The entry point builds one
instance and passes it to GenericContainer, HostResolver and DockerAuthConfig.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .docker import DEFAULT_DOCKER_HOST, DockerConfig
from .logging import LoggingConfig
from .wait import WaitConfig


class Settings(BaseSettings):
    """Library settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # Runtime endpoint (DOCKER_HOST). None lets docker-py pick its platform default.
    docker_host: str | None = Field(default=None)
    docker_timeout: int = Field(default=60, ge=1)

    # Host resolution
    testcontainers_host_override: str | None = Field(default=None)
    allow_host_override: bool = Field(default=True)
    default_gateway_probe_image: str = Field(default="alpine:3.14")

    # Registry authentication
    docker_auth_config: str | None = Field(default=None)
    home: str | None = Field(default=None)

    # Port allocation
    port_range_start: int = Field(default=49152, ge=1024, le=65535)
    port_range_end: int = Field(default=65535, ge=1024, le=65535)

    # Readiness defaults (seconds)
    wait_timeout: float = Field(default=10.0, gt=0)
    wait_poll_interval: float = Field(default=0.5, gt=0)
    wait_connect_timeout: float = Field(default=2.0, gt=0)
    wait_read_timeout: float = Field(default=1.0, gt=0)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")
    log_file: str | None = Field(default=None)
    log_max_size_mb: int = Field(default=100, ge=1)
    log_backup_count: int = Field(default=5, ge=1)

    @model_validator(mode="after")
    def _check_port_range(self):
        """Ensure the allocator range is not inverted."""
        if self.port_range_start > self.port_range_end:
            raise ValueError("port_range_start must not be greater than port_range_end")
        return self

    @property
    def docker(self) -> DockerConfig:
        """Access Docker configuration group."""
        return DockerConfig(
            docker_host=self.docker_host,
            docker_timeout=self.docker_timeout,
            testcontainers_host_override=self.testcontainers_host_override,
            allow_host_override=self.allow_host_override,
            default_gateway_probe_image=self.default_gateway_probe_image,
            port_range_start=self.port_range_start,
            port_range_end=self.port_range_end,
        )

    @property
    def wait(self) -> WaitConfig:
        """Access readiness wait configuration group."""
        return WaitConfig(
            wait_timeout=self.wait_timeout,
            wait_poll_interval=self.wait_poll_interval,
            wait_connect_timeout=self.wait_connect_timeout,
            wait_read_timeout=self.wait_read_timeout,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
            log_file=self.log_file,
            log_max_size_mb=self.log_max_size_mb,
            log_backup_count=self.log_backup_count,
        )


__all__ = [
    "DEFAULT_DOCKER_HOST",
    "Settings",
    "DockerConfig",
    "LoggingConfig",
    "WaitConfig",
]
