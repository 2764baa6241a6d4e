"""Error types and exception classes for ephemeral-containers."""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorType(str, Enum):
    """Error type enumeration."""

    CONFIGURATION = "configuration"
    UNSUPPORTED_SCHEME = "unsupported_scheme"
    CREATION_FAILED = "creation_failed"
    START_FAILED = "start_failed"
    UPLOAD_FAILED = "upload_failed"
    TIMEOUT = "timeout"
    PORT_NOT_FOUND = "port_not_found"
    NETWORK_NOT_FOUND = "network_not_found"
    CREDENTIAL_HELPER = "credential_helper"
    VALIDATION = "validation"
    RESOURCE_EXHAUSTED = "resource_exhausted"


class ContainerException(Exception):
    """Base exception for ephemeral-containers."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.CONFIGURATION,
        container_id: Optional[str] = None,
        details: Optional[List[str]] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.container_id = container_id
        self.details = details or []
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Render the error as structured log fields."""
        data: Dict[str, Any] = {
            "error": self.message,
            "error_type": self.error_type.value,
        }
        if self.container_id:
            data["container_id"] = self.container_id
        if self.details:
            data["details"] = self.details
        return data


class ConfigurationError(ContainerException):
    """Malformed runtime endpoint or registry auth configuration."""

    def __init__(self, message: str = "Invalid configuration", **kwargs):
        super().__init__(message=message, error_type=ErrorType.CONFIGURATION, **kwargs)


class UnsupportedSchemeError(ContainerException):
    """Runtime endpoint uses a scheme the resolver cannot handle."""

    def __init__(self, scheme: str, **kwargs):
        self.scheme = scheme
        super().__init__(
            message=f"Unsupported Docker host scheme: {scheme}",
            error_type=ErrorType.UNSUPPORTED_SCHEME,
            **kwargs,
        )


class CreationError(ContainerException):
    """Container could not be created."""

    def __init__(self, image: str, message: Optional[str] = None, **kwargs):
        self.image = image
        super().__init__(
            message=message or f"Failed to create container from image {image}",
            error_type=ErrorType.CREATION_FAILED,
            **kwargs,
        )


class StartError(ContainerException):
    """Container was created but could not be started."""

    def __init__(self, container_id: str, message: Optional[str] = None, **kwargs):
        super().__init__(
            message=message or f"Failed to start container {container_id}",
            error_type=ErrorType.START_FAILED,
            container_id=container_id,
            **kwargs,
        )


class UploadError(ContainerException):
    """Archive upload into the container failed."""

    def __init__(self, container_id: str, path: str = "/", message: Optional[str] = None, **kwargs):
        self.path = path
        super().__init__(
            message=message or f"Failed to upload archive to {path} in container {container_id}",
            error_type=ErrorType.UPLOAD_FAILED,
            container_id=container_id,
            **kwargs,
        )


class WaitTimeoutError(ContainerException):
    """Container did not become ready before the wait strategy timed out."""

    def __init__(self, container_id: str, timeout: Optional[float] = None, **kwargs):
        self.timeout = timeout
        message = f"Timed out waiting for container {container_id}"
        if timeout is not None:
            message += f" after {timeout:g} seconds"
        super().__init__(
            message=message,
            error_type=ErrorType.TIMEOUT,
            container_id=container_id,
            **kwargs,
        )


class PortNotFoundError(ContainerException):
    """Requested container port has no host mapping."""

    def __init__(self, port: str, container_id: Optional[str] = None, **kwargs):
        self.port = port
        message = f"Failed to get mapped port {port}"
        if container_id:
            message += f" for container {container_id}"
        super().__init__(
            message=message,
            error_type=ErrorType.PORT_NOT_FOUND,
            container_id=container_id,
            **kwargs,
        )


class NetworkNotFoundError(ContainerException):
    """Container is not attached to the named network."""

    def __init__(self, network: str, container_id: Optional[str] = None, **kwargs):
        self.network = network
        message = f"Network with name {network} does not exist"
        if container_id:
            message += f" on container {container_id}"
        super().__init__(
            message=message,
            error_type=ErrorType.NETWORK_NOT_FOUND,
            container_id=container_id,
            **kwargs,
        )


class CredentialHelperError(ContainerException):
    """Credential helper invocation failed."""

    def __init__(self, helper: str, registry: str, message: Optional[str] = None, **kwargs):
        self.helper = helper
        self.registry = registry
        super().__init__(
            message=message or f"Credential helper {helper} failed for registry {registry}",
            error_type=ErrorType.CREDENTIAL_HELPER,
            **kwargs,
        )


class ArchiveEntryError(ContainerException, ValueError):
    """Archive entry rejected when it was added."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message=message, error_type=ErrorType.VALIDATION, **kwargs)


class ContainerSpecFrozenError(ContainerException):
    """Container spec was modified after it was handed to the runtime."""

    def __init__(self, image: str, **kwargs):
        super().__init__(
            message=f"Container spec for image {image} is frozen after start()",
            error_type=ErrorType.VALIDATION,
            **kwargs,
        )


class PortAllocationError(ContainerException):
    """No host port left to hand out."""

    def __init__(self, message: str = "No free host port available", **kwargs):
        super().__init__(message=message, error_type=ErrorType.RESOURCE_EXHAUSTED, **kwargs)
