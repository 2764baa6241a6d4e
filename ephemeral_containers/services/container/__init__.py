"""Container services package.

This package provides container lifecycle management:
- client.py: Docker client factory
- host.py: Resolution of the host that serves published ports
- generic.py: Container definition and start-up
- started.py: Handles to running and stopped containers
"""

from .client import DockerClientFactory
from .generic import GenericContainer
from .host import HostResolver
from .started import ExecResult, StartedContainer, StoppedContainer

__all__ = [
    "DockerClientFactory",
    "ExecResult",
    "GenericContainer",
    "HostResolver",
    "StartedContainer",
    "StoppedContainer",
]
