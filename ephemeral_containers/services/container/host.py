"""Resolution of the host address at which started containers are reachable.

The resolution process is as follows:

1. If user overrides are allowed and TESTCONTAINERS_HOST_OVERRIDE is set, its
   value is returned verbatim.
2. Otherwise DOCKER_HOST (default ``tcp://127.0.0.1:2375``) is parsed.
   - For ``tcp``, ``http`` and ``https`` the URI host is used.
   - For ``unix`` and ``npipe`` outside a container the answer is
     ``localhost``. Inside a container the gateway of the ``bridge`` network
     (``podman`` for Podman sockets) is tried first, then the default route
     seen by a short-lived probe container.
3. If nothing else applies, ``localhost`` is returned.

The environment probes are plain callables passed to the constructor so that
each branch can be exercised without a container runtime.
"""

import os
from typing import Callable, Optional
from urllib.parse import urlsplit

import docker
import structlog

from ...config import Settings
from ...models.errors import ConfigurationError, ContainerException, UnsupportedSchemeError
from .client import TRANSPORT_ERRORS, DockerClientFactory

logger = structlog.get_logger(__name__)

LOCALHOST = "localhost"
TCP_SCHEMES = frozenset({"tcp", "http", "https"})
SOCKET_SCHEMES = frozenset({"unix", "npipe"})
CONTAINER_MARKERS = ("/.dockerenv", "/run/.containerenv")
DEFAULT_ROUTE_COMMAND = ["sh", "-c", "ip route | awk '/default/ { print $3 }'"]
PROBE_ERRORS = TRANSPORT_ERRORS + (ContainerException,)


def is_in_container() -> bool:
    """Detect whether this process runs inside a Docker or Podman container."""
    return any(os.path.exists(marker) for marker in CONTAINER_MARKERS)


class HostResolver:
    """Determines the address from which a started container is reachable."""

    def __init__(
        self,
        client: Optional[docker.APIClient] = None,
        settings: Optional[Settings] = None,
        allow_user_overrides: Optional[bool] = None,
        in_container: Optional[Callable[[], bool]] = None,
        find_gateway: Optional[Callable[[str], Optional[str]]] = None,
        find_default_gateway: Optional[Callable[[], Optional[str]]] = None,
    ):
        """Initialize the resolver.

        Args:
            client: Docker API client used for network inspection and the
                probe container; created from settings when omitted
            settings: Library settings; read from the environment when omitted
            allow_user_overrides: Whether TESTCONTAINERS_HOST_OVERRIDE is
                honoured; defaults to ``settings.allow_host_override``
            in_container: Returns True when running inside a container
            find_gateway: Maps a network name to its gateway address
            find_default_gateway: Returns the default route gateway seen from
                inside a container
        """
        self.settings = settings or Settings()
        self._client = client
        self._allow_user_overrides = (
            self.settings.allow_host_override if allow_user_overrides is None else allow_user_overrides
        )
        self._in_container = in_container or is_in_container
        self._find_gateway = find_gateway or self.find_gateway
        self._find_default_gateway = find_default_gateway or self.find_default_gateway

    @property
    def client(self) -> docker.APIClient:
        if self._client is None:
            self._client = DockerClientFactory(self.settings).get_client()
        return self._client

    def resolve_host(self) -> str:
        """Resolve the host address for connecting to a container.

        Raises:
            ConfigurationError: DOCKER_HOST cannot be parsed
            UnsupportedSchemeError: DOCKER_HOST uses an unknown scheme
        """
        override = self.settings.testcontainers_host_override
        if self._allow_user_overrides and override is not None:
            return override

        endpoint = self.settings.docker.endpoint
        try:
            parts = urlsplit(endpoint)
        except ValueError as e:
            raise ConfigurationError(f"Invalid DOCKER_HOST value {endpoint!r}: {e}") from e

        scheme = parts.scheme.lower()
        if not scheme:
            raise ConfigurationError(f"DOCKER_HOST has no scheme: {endpoint!r}")

        if scheme in TCP_SCHEMES:
            try:
                return parts.hostname or LOCALHOST
            except ValueError as e:
                raise ConfigurationError(f"Invalid DOCKER_HOST value {endpoint!r}: {e}") from e

        if scheme in SOCKET_SCHEMES:
            if not self._in_container():
                return LOCALHOST

            network = "podman" if "podman.sock" in endpoint else "bridge"
            gateway = self._find_gateway(network)
            if gateway:
                logger.debug("Resolved host from network gateway", network=network, host=gateway)
                return gateway

            default_gateway = self._find_default_gateway()
            if default_gateway:
                logger.debug("Resolved host from default route", host=default_gateway)
                return default_gateway

            return LOCALHOST

        raise UnsupportedSchemeError(scheme)

    def find_gateway(self, network_name: str) -> Optional[str]:
        """Inspect a network and return the first IPAM gateway, if any."""
        try:
            network = self.client.inspect_network(network_name)
        except TRANSPORT_ERRORS as e:
            logger.debug("Network inspection failed", network=network_name, error=str(e))
            return None

        ipam = (network or {}).get("IPAM") or {}
        for config in ipam.get("Config") or []:
            gateway = (config or {}).get("Gateway")
            if gateway:
                return gateway
        return None

    def find_default_gateway(self) -> Optional[str]:
        """Start a throwaway container and read its default route gateway.

        The probe container is removed on every path, including a start-up
        that fails after creation. Teardown errors never replace the result.
        """
        # Imported here: GenericContainer resolves hosts through this module.
        from .generic import GenericContainer

        probe = None
        try:
            probe = (
                GenericContainer(
                    self.settings.default_gateway_probe_image,
                    client=self.client,
                    settings=self.settings,
                )
                .with_command(["tail", "-f", "/dev/null"])
                .start(cleanup_on_failure=True)
            )
            output = probe.exec(DEFAULT_ROUTE_COMMAND).strip()
            return output or None
        except PROBE_ERRORS as e:
            logger.debug("Default gateway probe failed", error=str(e))
            return None
        finally:
            if probe is not None:
                try:
                    probe.stop()
                except PROBE_ERRORS as e:
                    logger.debug("Failed to stop gateway probe container", container_id=probe.id, error=str(e))
