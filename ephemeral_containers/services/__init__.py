"""Services for ephemeral-containers."""

from .auth import DockerAuthConfig, RegistryCredentials
from .container import GenericContainer, HostResolver, StartedContainer, StoppedContainer

__all__ = [
    "DockerAuthConfig",
    "GenericContainer",
    "HostResolver",
    "RegistryCredentials",
    "StartedContainer",
    "StoppedContainer",
]
