"""Data models for container specifications.

These models describe what to create. They are built incrementally by
GenericContainer and frozen once handed to the runtime.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from .errors import ContainerSpecFrozenError

PROTOCOLS = ("tcp", "udp", "sctp")


class HttpMethod(str, Enum):
    """HTTP methods accepted by the HTTP readiness probe."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @classmethod
    def from_string(cls, method: str) -> "HttpMethod":
        """Parse a method name case-insensitively."""
        try:
            return cls(method.upper())
        except ValueError:
            raise ValueError(f"Invalid HTTP method: {method}") from None


@dataclass(frozen=True)
class ExposedPort:
    """A container port and its protocol."""

    port: int
    protocol: str = "tcp"

    def __post_init__(self):
        if not 0 < self.port <= 65535:
            raise ValueError(f"Invalid port number: {self.port}")
        if self.protocol not in PROTOCOLS:
            raise ValueError(f"Invalid port protocol: {self.protocol}")

    @classmethod
    def parse(cls, value: Union[int, str, "ExposedPort"]) -> "ExposedPort":
        """Parse ``8080``, ``"8080"`` or ``"8080/udp"``."""
        if isinstance(value, ExposedPort):
            return value
        if isinstance(value, int):
            return cls(port=value)

        text = value.strip().lower()
        port, _, protocol = text.partition("/")
        if not port.isdigit():
            raise ValueError(f"Invalid port specification: {value}")
        return cls(port=int(port), protocol=protocol or "tcp")

    @property
    def key(self) -> str:
        """Key form used by the Docker API, e.g. ``80/tcp``."""
        return f"{self.port}/{self.protocol}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class PortBinding:
    """A host address a container port is published on."""

    host_ip: str
    host_port: int


@dataclass(frozen=True)
class Mount:
    """Bind mount from the host into the container."""

    source: str
    target: str
    read_only: bool = False
    type: str = "bind"


@dataclass(frozen=True)
class HealthCheck:
    """Docker health check definition.

    Durations are in seconds; the runtime expects nanoseconds.
    """

    command: str
    interval: float = 1.0
    timeout: float = 3.0
    retries: int = 3
    start_period: float = 0.0

    def to_api(self) -> Dict[str, object]:
        """Render as the ``Healthcheck`` create-request field."""
        return {
            "test": ["CMD-SHELL", self.command],
            "interval": int(self.interval * 1_000_000_000),
            "timeout": int(self.timeout * 1_000_000_000),
            "retries": self.retries,
            "start_period": int(self.start_period * 1_000_000_000),
        }


@dataclass
class ContainerSpec:
    """Everything needed to create one container."""

    image: str
    name: Optional[str] = None
    hostname: Optional[str] = None
    command: List[str] = field(default_factory=list)
    entrypoint: Optional[str] = None
    environment: Dict[str, str] = field(default_factory=dict)
    labels: Optional[Dict[str, str]] = None
    exposed_ports: List[ExposedPort] = field(default_factory=list)
    mounts: List[Mount] = field(default_factory=list)
    health_check: Optional[HealthCheck] = None
    privileged: bool = False
    network: Optional[str] = None
    working_dir: Optional[str] = None
    user: Optional[str] = None

    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name, value):
        if getattr(self, "_frozen", False):
            raise ContainerSpecFrozenError(self.image)
        super().__setattr__(name, value)

    def freeze(self) -> "ContainerSpec":
        """Make the spec read-only."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def ensure_mutable(self) -> None:
        """Raise if the spec was already handed to the runtime."""
        if self._frozen:
            raise ContainerSpecFrozenError(self.image)

    def expose(self, port: Union[int, str, ExposedPort]) -> None:
        """Add an exposed port, ignoring duplicates."""
        self.ensure_mutable()
        exposed = ExposedPort.parse(port)
        if exposed not in self.exposed_ports:
            self.exposed_ports.append(exposed)

    @property
    def has_host_config(self) -> bool:
        """True when any host-level field differs from its default."""
        return bool(self.exposed_ports) or self.privileged or bool(self.mounts)

    @property
    def environment_list(self) -> List[str]:
        """Environment as ``KEY=value`` strings."""
        return [f"{key}={value}" for key, value in self.environment.items()]
