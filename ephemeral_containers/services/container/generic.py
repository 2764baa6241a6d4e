"""Container definition and start-up."""

import shlex
from typing import Any, Dict, Iterable, List, Optional, Union

import docker
import structlog
from docker.errors import ImageNotFound
from docker.types import Mount as DockerMount
from docker.utils import parse_repository_tag

from ...config import Settings
from ...models.archive import ContentEntry, DirectoryEntry, FileEntry
from ...models.container import ContainerSpec, ExposedPort, HealthCheck, Mount
from ...models.errors import ArchiveEntryError, CreationError, StartError, UploadError
from ...utils.archive import ArchiveBuilder
from ...utils.ports import PortAllocator, get_default_port_allocator
from ..auth import DockerAuthConfig
from ..wait import BaseWaitStrategy, WaitForContainer
from .client import TRANSPORT_ERRORS, DockerClientFactory
from .host import HostResolver
from .started import StartedContainer

logger = structlog.get_logger(__name__)

DEFAULT_TAG = "latest"
BIND_ADDRESS = "0.0.0.0"


class GenericContainer:
    """Fluent definition of a container, turned into a running one by start().

    Every ``with_*`` method returns the instance. Once :meth:`start` has been
    called the definition is frozen and further ``with_*`` calls raise
    ContainerSpecFrozenError.

    Example:
        container = (
            GenericContainer("redis:7")
            .with_exposed_ports(6379)
            .with_wait(WaitForHostPort())
            .start()
        )
    """

    def __init__(
        self,
        image: str,
        settings: Optional[Settings] = None,
        client: Optional[docker.APIClient] = None,
        auth_config: Optional[DockerAuthConfig] = None,
        host_resolver: Optional[HostResolver] = None,
    ):
        """Initialize the definition.

        Args:
            image: Image reference, e.g. ``postgres:16`` or ``ghcr.io/org/app``
            settings: Library settings; read from the environment when omitted
            client: Docker API client; created from settings when omitted
            auth_config: Registry credentials used when the image is pulled
            host_resolver: Resolver handed to the started container
        """
        self.settings = settings or Settings()
        self.spec = ContainerSpec(image=image)
        self._client = client
        self._auth_config = auth_config
        self._host_resolver = host_resolver
        self._port_allocator: Optional[PortAllocator] = None
        self._wait_strategy: Optional[BaseWaitStrategy] = None
        self._archive = ArchiveBuilder()
        self._host_ports: List[int] = []

    @property
    def image(self) -> str:
        return self.spec.image

    @property
    def client(self) -> docker.APIClient:
        if self._client is None:
            self._client = DockerClientFactory(self.settings).get_client()
        return self._client

    @property
    def port_allocator(self) -> PortAllocator:
        if self._port_allocator is None:
            return get_default_port_allocator(self.settings.port_range_start, self.settings.port_range_end)
        return self._port_allocator

    @property
    def wait_strategy(self) -> BaseWaitStrategy:
        if self._wait_strategy is None:
            return WaitForContainer.from_settings(self.settings)
        return self._wait_strategy

    # Builder methods

    def with_name(self, name: str) -> "GenericContainer":
        self.spec.ensure_mutable()
        self.spec.name = name
        return self

    def with_hostname(self, hostname: str) -> "GenericContainer":
        self.spec.ensure_mutable()
        self.spec.hostname = hostname
        return self

    def with_command(self, command: Union[str, List[str]]) -> "GenericContainer":
        """Set the container command; a string is split like a shell would."""
        self.spec.ensure_mutable()
        self.spec.command = shlex.split(command) if isinstance(command, str) else list(command)
        return self

    def with_entrypoint(self, entrypoint: str) -> "GenericContainer":
        self.spec.ensure_mutable()
        self.spec.entrypoint = entrypoint
        return self

    def with_env(self, environment: Dict[str, str]) -> "GenericContainer":
        """Merge environment variables into the container environment."""
        self.spec.ensure_mutable()
        self.spec.environment.update({key: str(value) for key, value in environment.items()})
        return self

    def with_labels(self, labels: Dict[str, str]) -> "GenericContainer":
        self.spec.ensure_mutable()
        self.spec.labels = dict(labels)
        return self

    def with_exposed_ports(self, *ports: Union[int, str, ExposedPort]) -> "GenericContainer":
        """Expose container ports, e.g. ``80``, ``"8080"`` or ``"53/udp"``."""
        for port in ports:
            self.spec.expose(port)
        return self

    def with_mount(self, source: str, target: str, read_only: bool = False) -> "GenericContainer":
        """Bind-mount a host path into the container."""
        self.spec.ensure_mutable()
        self.spec.mounts.append(Mount(source=source, target=target, read_only=read_only))
        return self

    def with_health_check_command(
        self,
        command: str,
        interval: float = 1.0,
        timeout: float = 3.0,
        retries: int = 3,
        start_period: float = 0.0,
    ) -> "GenericContainer":
        """Define a ``CMD-SHELL`` health check; durations are in seconds."""
        self.spec.ensure_mutable()
        self.spec.health_check = HealthCheck(
            command=command,
            interval=interval,
            timeout=timeout,
            retries=retries,
            start_period=start_period,
        )
        return self

    def with_privileged(self, privileged: bool = True) -> "GenericContainer":
        self.spec.ensure_mutable()
        self.spec.privileged = privileged
        return self

    def with_network(self, network: str) -> "GenericContainer":
        self.spec.ensure_mutable()
        self.spec.network = network
        return self

    def with_working_dir(self, working_dir: str) -> "GenericContainer":
        self.spec.ensure_mutable()
        self.spec.working_dir = working_dir
        return self

    def with_user(self, user: str) -> "GenericContainer":
        self.spec.ensure_mutable()
        self.spec.user = user
        return self

    def with_port_allocator(self, allocator: PortAllocator) -> "GenericContainer":
        self.spec.ensure_mutable()
        self._port_allocator = allocator
        return self

    def with_wait(self, strategy: BaseWaitStrategy) -> "GenericContainer":
        self.spec.ensure_mutable()
        self._wait_strategy = strategy
        return self

    def with_copy_files_to_container(self, files: Iterable[FileEntry]) -> "GenericContainer":
        """Copy host files into the container before readiness checks run."""
        return self._add_copy_entries(files, FileEntry)

    def with_copy_directories_to_container(self, directories: Iterable[DirectoryEntry]) -> "GenericContainer":
        """Copy host directories (recursively) into the container."""
        return self._add_copy_entries(directories, DirectoryEntry)

    def with_copy_content_to_container(self, contents: Iterable[ContentEntry]) -> "GenericContainer":
        """Write inline content to files in the container."""
        return self._add_copy_entries(contents, ContentEntry)

    def _add_copy_entries(self, entries: Iterable[Any], entry_type: type) -> "GenericContainer":
        self.spec.ensure_mutable()
        for entry in entries:
            if not isinstance(entry, entry_type):
                raise ArchiveEntryError(f"Expected {entry_type.__name__}, got {type(entry).__name__}")
            self._archive.add(entry)
        return self

    # Start-up

    def _create_container_config(self) -> Dict[str, Any]:
        """Translate the definition into ``create_container`` keyword arguments.

        Host ports are allocated here, one per exposed port.
        """
        spec = self.spec
        config: Dict[str, Any] = {"image": spec.image}

        if spec.name:
            config["name"] = spec.name
        if spec.hostname:
            config["hostname"] = spec.hostname
        if spec.command:
            config["command"] = list(spec.command)
        if spec.entrypoint:
            config["entrypoint"] = spec.entrypoint
        if spec.environment:
            config["environment"] = spec.environment_list
        if spec.labels is not None:
            config["labels"] = dict(spec.labels)
        if spec.working_dir:
            config["working_dir"] = spec.working_dir
        if spec.user:
            config["user"] = spec.user
        if spec.health_check is not None:
            config["healthcheck"] = spec.health_check.to_api()
        if spec.exposed_ports:
            config["ports"] = [(port.port, port.protocol) for port in spec.exposed_ports]

        # Some runtimes reject an empty HostConfig, so it is only sent when needed
        if spec.has_host_config:
            host_config: Dict[str, Any] = {}
            if spec.exposed_ports:
                host_config["port_bindings"] = {
                    port.key: (BIND_ADDRESS, self._allocate()) for port in spec.exposed_ports
                }
            if spec.privileged:
                host_config["privileged"] = True
            if spec.mounts:
                host_config["mounts"] = [
                    DockerMount(target=m.target, source=m.source, type=m.type, read_only=m.read_only)
                    for m in spec.mounts
                ]
            config["host_config"] = self.client.create_host_config(**host_config)

        if spec.network:
            config["networking_config"] = self.client.create_networking_config(
                {spec.network: self.client.create_endpoint_config()}
            )

        return config

    def _allocate(self) -> int:
        port = self.port_allocator.allocate()
        self._host_ports.append(port)
        return port

    def _release_host_ports(self) -> None:
        for port in self._host_ports:
            self.port_allocator.release(port)
        self._host_ports = []

    def _pull_image(self) -> None:
        repository, tag = parse_repository_tag(self.image)
        tag = tag or DEFAULT_TAG

        auth_config = self._auth_config or DockerAuthConfig(self.settings)
        credentials = auth_config.get_auth_for_image(self.image)

        logger.info("Pulling image", repository=repository, tag=tag, authenticated=credentials is not None)
        self.client.pull(
            repository,
            tag=tag,
            auth_config=credentials.to_auth_config() if credentials else None,
        )

    def _create(self, config: Dict[str, Any]) -> str:
        try:
            try:
                return self.client.create_container(**config)["Id"]
            except ImageNotFound:
                logger.info("Image not found locally", image=self.image)
                self._pull_image()

            return self.client.create_container(**config)["Id"]
        except ImageNotFound as e:
            raise CreationError(self.image, f"Image {self.image} not found after pull: {e}") from e
        except TRANSPORT_ERRORS as e:
            raise CreationError(self.image, f"Failed to create container from image {self.image}: {e}") from e

    def start(self, cleanup_on_failure: bool = False) -> StartedContainer:
        """Create and start the container, then wait until it is ready.

        Runs strictly in order: create (pulling the image once if it is
        missing), start, upload copy entries, wait. By default a container
        that fails after creation, for example on a readiness timeout, is
        left in place for inspection.

        Args:
            cleanup_on_failure: Stop and remove the container when any step
                after creation fails

        Returns:
            Handle to the running container

        Raises:
            ContainerSpecFrozenError: start() was already called
            CreationError: The container could not be created
            StartError: The container could not be started
            UploadError: Copy entries could not be uploaded
            WaitTimeoutError: The container did not become ready in time
        """
        self.spec.ensure_mutable()
        self.spec.freeze()

        try:
            config = self._create_container_config()
            logger.info("Creating container", image=self.image, name=self.spec.name)
            container_id = self._create(config)
        except Exception:
            self._release_host_ports()
            raise

        started = StartedContainer(
            container_id,
            self.client,
            settings=self.settings,
            host_resolver=self._host_resolver,
            port_allocator=self.port_allocator if self._host_ports else None,
            host_ports=self._host_ports,
        )

        try:
            try:
                self.client.start(container_id)
            except TRANSPORT_ERRORS as e:
                raise StartError(container_id, f"Failed to start container {container_id}: {e}") from e
            logger.info("Container started", container_id=container_id[:12], image=self.image)

            if len(self._archive):
                self._upload_archive(started)

            self.wait_strategy.wait(started)
        except Exception:
            if cleanup_on_failure:
                logger.info("Removing container after failed start-up", container_id=container_id[:12])
                started.discard()
            raise

        return started

    def _upload_archive(self, container: StartedContainer) -> None:
        data = self._archive.build_archive()
        try:
            accepted = container.copy_to_container(data, "/")
        except TRANSPORT_ERRORS as e:
            raise UploadError(container.id, "/", f"Failed to upload archive to container {container.id}: {e}") from e

        if not accepted:
            raise UploadError(container.id, "/")
        logger.debug("Uploaded files to container", container_id=container.id[:12], entries=len(self._archive))
