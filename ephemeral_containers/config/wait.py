"""Readiness wait configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings


class WaitConfig(BaseSettings):
    """Default timings for readiness strategies (seconds)."""

    timeout: float = Field(default=10.0, gt=0, alias="wait_timeout")
    poll_interval: float = Field(default=0.5, gt=0, alias="wait_poll_interval")
    connect_timeout: float = Field(default=2.0, gt=0, alias="wait_connect_timeout")
    read_timeout: float = Field(default=1.0, gt=0, alias="wait_read_timeout")

    class Config:
        env_prefix = ""
        extra = "ignore"
        populate_by_name = True
