"""Ephemeral service containers for automated tests.

Example:
    from ephemeral_containers import GenericContainer, WaitForHostPort

    with GenericContainer("redis:7").with_exposed_ports(6379).with_wait(WaitForHostPort()).start() as redis:
        port = redis.get_mapped_port(6379)
"""

from ._version import __version__
from .config import Settings
from .models import (
    ArchiveEntryError,
    ConfigurationError,
    ContainerException,
    ContainerSpecFrozenError,
    ContentEntry,
    CreationError,
    CredentialHelperError,
    DirectoryEntry,
    ErrorType,
    FileEntry,
    HttpMethod,
    NetworkNotFoundError,
    PortAllocationError,
    PortNotFoundError,
    StartError,
    UnsupportedSchemeError,
    UploadError,
    WaitTimeoutError,
)
from .services.auth import DockerAuthConfig, RegistryCredentials
from .services.container import GenericContainer, HostResolver, StartedContainer, StoppedContainer
from .services.wait import (
    BaseWaitStrategy,
    WaitForContainer,
    WaitForExec,
    WaitForHealthCheck,
    WaitForHostPort,
    WaitForHttp,
    WaitForLog,
)
from .utils.archive import ArchiveBuilder
from .utils.ports import FixedPortAllocator, PortAllocator, RandomUniquePortAllocator

__all__ = [
    "__version__",
    "Settings",
    # Containers
    "GenericContainer",
    "HostResolver",
    "StartedContainer",
    "StoppedContainer",
    # Readiness
    "BaseWaitStrategy",
    "WaitForContainer",
    "WaitForExec",
    "WaitForHealthCheck",
    "WaitForHostPort",
    "WaitForHttp",
    "WaitForLog",
    "HttpMethod",
    # Files and ports
    "ArchiveBuilder",
    "ContentEntry",
    "DirectoryEntry",
    "FileEntry",
    "FixedPortAllocator",
    "PortAllocator",
    "RandomUniquePortAllocator",
    # Registry auth
    "DockerAuthConfig",
    "RegistryCredentials",
    # Errors
    "ArchiveEntryError",
    "ConfigurationError",
    "ContainerException",
    "ContainerSpecFrozenError",
    "CreationError",
    "CredentialHelperError",
    "ErrorType",
    "NetworkNotFoundError",
    "PortAllocationError",
    "PortNotFoundError",
    "StartError",
    "UnsupportedSchemeError",
    "UploadError",
    "WaitTimeoutError",
]
