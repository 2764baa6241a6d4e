"""Data models for ephemeral-containers."""

from .archive import ArchiveEntry, ContentEntry, DirectoryEntry, FileEntry
from .container import (
    ContainerSpec,
    ExposedPort,
    HealthCheck,
    HttpMethod,
    Mount,
    PortBinding,
)
from .errors import (
    ArchiveEntryError,
    ConfigurationError,
    ContainerException,
    ContainerSpecFrozenError,
    CreationError,
    CredentialHelperError,
    ErrorType,
    NetworkNotFoundError,
    PortAllocationError,
    PortNotFoundError,
    StartError,
    UnsupportedSchemeError,
    UploadError,
    WaitTimeoutError,
)

__all__ = [
    # Archive entries
    "ArchiveEntry",
    "ContentEntry",
    "DirectoryEntry",
    "FileEntry",
    # Container spec
    "ContainerSpec",
    "ExposedPort",
    "HealthCheck",
    "HttpMethod",
    "Mount",
    "PortBinding",
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
