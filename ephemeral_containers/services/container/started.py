"""Handles to containers created by GenericContainer."""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

import docker
import structlog

from ...config import Settings
from ...models.container import ExposedPort, PortBinding
from ...models.errors import NetworkNotFoundError, PortNotFoundError
from ...utils.ports import PortAllocator
from .client import TRANSPORT_ERRORS
from .host import HostResolver

logger = structlog.get_logger(__name__)

CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F]")


def strip_control_chars(output: Union[bytes, str, None]) -> str:
    """Decode runtime output and drop ASCII control bytes."""
    if output is None:
        return ""
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    return CONTROL_CHARS.sub("", output)


@dataclass
class ExecResult:
    """Outcome of a command executed inside a container."""

    exit_code: Optional[int]
    output: str


class StartedContainer:
    """A running container.

    The container id never changes, including across :meth:`restart`. Port
    and network lookups read a cached inspect snapshot that is taken on first
    use and dropped by :meth:`invalidate` or ``inspect(refresh=True)``.
    """

    def __init__(
        self,
        container_id: str,
        client: docker.APIClient,
        settings: Optional[Settings] = None,
        host_resolver: Optional[HostResolver] = None,
        port_allocator: Optional[PortAllocator] = None,
        host_ports: Iterable[int] = (),
    ):
        self.id = container_id
        self.client = client
        self.settings = settings or Settings()
        self._host_resolver = host_resolver
        self._port_allocator = port_allocator
        self._host_ports = list(host_ports)
        self._inspect: Optional[Dict[str, Any]] = None
        self._host: Optional[str] = None
        self._last_exec_id: Optional[str] = None

    def __repr__(self) -> str:
        return f"StartedContainer(id={self.id[:12]!r})"

    def __enter__(self) -> "StartedContainer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    @property
    def host_resolver(self) -> HostResolver:
        if self._host_resolver is None:
            self._host_resolver = HostResolver(client=self.client, settings=self.settings)
        return self._host_resolver

    def get_id(self) -> str:
        return self.id

    def get_last_exec_id(self) -> Optional[str]:
        """Id of the most recent exec instance, if any command ran."""
        return self._last_exec_id

    def inspect(self, refresh: bool = False) -> Dict[str, Any]:
        """Return the container inspect document, fetching it when needed."""
        if self._inspect is None or refresh:
            self._inspect = self.client.inspect_container(self.id)
        return self._inspect

    def invalidate(self) -> None:
        """Drop the cached inspect snapshot."""
        self._inspect = None

    def _exec(self, command: Union[str, List[str]]) -> str:
        exec_instance = self.client.exec_create(self.id, command, stdout=True, stderr=True)
        self._last_exec_id = exec_instance["Id"]
        return strip_control_chars(self.client.exec_start(self._last_exec_id))

    def exec(self, command: Union[str, List[str]]) -> str:
        """Run a command and return its combined stdout/stderr.

        Control characters are removed from the output.
        """
        return self._exec(command)

    def exec_run(self, command: Union[str, List[str]]) -> ExecResult:
        """Run a command and return its exit code along with the output."""
        output = self._exec(command)
        exit_code = self.client.exec_inspect(self._last_exec_id).get("ExitCode")
        logger.debug("Executed command in container", container_id=self.id[:12], exit_code=exit_code)
        return ExecResult(exit_code=exit_code, output=output)

    def logs(self) -> str:
        """Return the container's stdout/stderr log so far."""
        return strip_control_chars(self.client.logs(self.id, stdout=True, stderr=True))

    def stop(self) -> "StoppedContainer":
        """Stop and remove the container."""
        self.client.stop(self.id)
        self.client.remove_container(self.id)
        self._release_host_ports()
        logger.info("Container stopped and removed", container_id=self.id[:12])
        return StoppedContainer(self.id)

    def discard(self) -> None:
        """Stop and remove the container without raising.

        Used to clean up after a start-up that failed once the container
        existed, where the original error must propagate unchanged.
        """
        try:
            self.client.stop(self.id)
        except TRANSPORT_ERRORS as e:
            logger.debug("Failed to stop container", container_id=self.id[:12], error=str(e))
        try:
            self.client.remove_container(self.id, force=True)
        except TRANSPORT_ERRORS as e:
            logger.warning("Failed to remove container", container_id=self.id[:12], error=str(e))
        self._release_host_ports()

    def _release_host_ports(self) -> None:
        if self._port_allocator is not None:
            for port in self._host_ports:
                self._port_allocator.release(port)
        self._host_ports = []

    def restart(self) -> "StartedContainer":
        """Restart the container in place; the id stays the same."""
        self.client.restart(self.id)
        self.invalidate()
        logger.debug("Container restarted", container_id=self.id[:12])
        return self

    def get_host(self) -> str:
        """Address from which this container's published ports are reachable."""
        if self._host is None:
            self._host = self.host_resolver.resolve_host()
        return self._host

    def get_port_bindings(self) -> Dict[str, List[PortBinding]]:
        """Published ports keyed by ``port/protocol``."""
        ports = ((self.inspect().get("NetworkSettings") or {}).get("Ports")) or {}
        bindings: Dict[str, List[PortBinding]] = {}
        for key, entries in ports.items():
            bindings[key] = [
                PortBinding(host_ip=entry.get("HostIp") or "", host_port=int(entry["HostPort"]))
                for entry in entries or []
                if entry.get("HostPort")
            ]
        return bindings

    def get_mapped_port(self, port: Union[int, str], protocol: str = "tcp") -> int:
        """Host port that a container port is published on.

        Args:
            port: Container port, either a number or ``"port/protocol"``
            protocol: Protocol used when ``port`` does not name one

        Raises:
            PortNotFoundError: The port is not published
        """
        if isinstance(port, str) and "/" in port:
            exposed = ExposedPort.parse(port)
        else:
            exposed = ExposedPort(port=int(port), protocol=protocol)

        bindings = self.get_port_bindings().get(exposed.key)
        if not bindings:
            raise PortNotFoundError(exposed.key, container_id=self.id)
        return bindings[0].host_port

    def get_first_mapped_port(self) -> int:
        """Host port of the first published container port."""
        for bindings in self.get_port_bindings().values():
            if bindings:
                return bindings[0].host_port
        raise PortNotFoundError("any", container_id=self.id)

    def get_name(self) -> str:
        return (self.inspect().get("Name") or "").strip("/")

    def get_labels(self) -> Dict[str, str]:
        return dict(((self.inspect().get("Config") or {}).get("Labels")) or {})

    def _networks(self) -> Dict[str, Any]:
        return ((self.inspect().get("NetworkSettings") or {}).get("Networks")) or {}

    def get_network_names(self) -> List[str]:
        return list(self._networks())

    def get_network_id(self, network_name: str) -> str:
        """Id of an attached network.

        Raises:
            NetworkNotFoundError: The container is not attached to the network
        """
        network = self._networks().get(network_name)
        if network is None:
            raise NetworkNotFoundError(network_name, container_id=self.id)
        return network.get("NetworkID", "")

    def get_ip_address(self, network_name: str) -> str:
        """Container IP address on an attached network.

        Raises:
            NetworkNotFoundError: The container is not attached to the network
        """
        network = self._networks().get(network_name)
        if network is None:
            raise NetworkNotFoundError(network_name, container_id=self.id)
        return network.get("IPAddress", "")

    def copy_to_container(
        self,
        data: bytes,
        path: str = "/",
        no_overwrite_dir_non_dir: bool = False,
        copy_uid_gid: bool = False,
    ) -> bool:
        """Upload a tar archive and extract it at ``path``.

        Returns:
            True if the runtime accepted the archive
        """
        if not no_overwrite_dir_non_dir and not copy_uid_gid:
            return bool(self.client.put_archive(self.id, path, data))

        # put_archive only sends ``path``; the extra flags need the raw endpoint
        params: Dict[str, Any] = {"path": path}
        if no_overwrite_dir_non_dir:
            params["noOverwriteDirNonDir"] = True
        if copy_uid_gid:
            params["copyUIDGID"] = True
        # docker-py (tested with 7.x) has no public call for these query flags
        url = self.client._url("/containers/{0}/archive", self.id)
        response = self.client._put(url, params=params, data=data)
        self.client._raise_for_status(response)
        return response.status_code == 200


class StoppedContainer:
    """A container that has been stopped and removed."""

    def __init__(self, container_id: str):
        self.id = container_id

    def __repr__(self) -> str:
        return f"StoppedContainer(id={self.id[:12]!r})"

    def get_id(self) -> str:
        return self.id
