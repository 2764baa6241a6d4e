"""Docker runtime configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_DOCKER_HOST = "tcp://127.0.0.1:2375"


class DockerConfig(BaseSettings):
    """Runtime endpoint and host resolution settings."""

    host: str | None = Field(default=None, alias="docker_host")
    timeout: int = Field(default=60, ge=1, alias="docker_timeout")
    host_override: str | None = Field(default=None, alias="testcontainers_host_override")
    allow_host_override: bool = Field(default=True)
    default_gateway_probe_image: str = Field(default="alpine:3.14")

    # Host port range handed out by the random port allocator
    port_range_start: int = Field(default=49152, ge=1024, le=65535)
    port_range_end: int = Field(default=65535, ge=1024, le=65535)

    class Config:
        env_prefix = ""
        extra = "ignore"
        populate_by_name = True

    @property
    def endpoint(self) -> str:
        """Runtime endpoint URI used for host resolution."""
        return self.host or DEFAULT_DOCKER_HOST
