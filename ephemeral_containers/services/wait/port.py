"""Readiness based on published TCP ports accepting connections."""

import socket
from typing import TYPE_CHECKING, Iterable, Optional, Set, Tuple, Union

import structlog

from ...models.container import ExposedPort
from .base import BaseWaitStrategy

if TYPE_CHECKING:
    from ..container.started import StartedContainer

logger = structlog.get_logger(__name__)

DEFAULT_CONNECT_TIMEOUT = 2.0
WILDCARD_ADDRESSES = frozenset({"", "0.0.0.0", "::"})


class WaitForHostPort(BaseWaitStrategy):
    """Ready once every published TCP port accepts a connection.

    Bindings on a wildcard address are probed on ``container.get_host()``.
    Without ``ports`` a container with no published ports is considered
    ready; every port named in ``ports`` must be published first.
    """

    settings_timeouts = ("connect_timeout",)

    def __init__(
        self,
        ports: Optional[Iterable[Union[int, str, ExposedPort]]] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        **kwargs,
    ):
        """Initialize the strategy.

        Args:
            ports: Container ports to check; all published ports when omitted
            connect_timeout: Limit for a single connection attempt in seconds
            **kwargs: ``timeout`` and ``poll_interval`` for the polling loop
        """
        super().__init__(**kwargs)
        self.ports = {ExposedPort.parse(port).key for port in ports} if ports is not None else None
        self.connect_timeout = connect_timeout

    def _targets(self, container: "StartedContainer") -> Optional[Set[Tuple[str, int]]]:
        """Addresses to dial, or None while a requested port is unpublished."""
        container.inspect(refresh=True)
        port_bindings = container.get_port_bindings()

        if self.ports is not None:
            missing = sorted(key for key in self.ports if not port_bindings.get(key))
            if missing:
                logger.debug("Requested ports not published", container_id=container.id[:12], ports=missing)
                return None

        targets = set()
        for key, bindings in port_bindings.items():
            if not key.endswith("/tcp"):
                continue
            if self.ports is not None and key not in self.ports:
                continue
            for binding in bindings:
                host = container.get_host() if binding.host_ip in WILDCARD_ADDRESSES else binding.host_ip
                targets.add((host, binding.host_port))
        return targets

    def is_port_open(self, host: str, port: int) -> bool:
        try:
            with socket.create_connection((host, port), timeout=self.connect_timeout):
                return True
        except OSError:
            return False

    def is_ready(self, container: "StartedContainer") -> bool:
        targets = self._targets(container)
        if targets is None:
            return False
        for host, port in sorted(targets):
            if not self.is_port_open(host, port):
                logger.debug("Port not accepting connections", container_id=container.id[:12], host=host, port=port)
                return False
        return True
