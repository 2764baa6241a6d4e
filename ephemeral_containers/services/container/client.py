"""Docker client factory and initialization."""

import threading
from typing import Optional

import docker
import structlog
from docker.errors import DockerException
from docker.utils import kwargs_from_env
from requests.exceptions import RequestException

from ...config import Settings

logger = structlog.get_logger(__name__)

# docker-py raises transport failures (refused connections, read timeouts)
# from requests without wrapping them in DockerException.
TRANSPORT_ERRORS = (DockerException, RequestException)


class DockerClientFactory:
    """Creates the low-level Docker API client on first use.

    The client is the shared transport for every container handle built from
    the same settings; docker-py's connection pool is safe across threads.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.client: Optional[docker.APIClient] = None
        self._initialization_error: Optional[str] = None
        self._lock = threading.Lock()

    def _client_kwargs(self) -> dict:
        kwargs = kwargs_from_env()
        if self.settings.docker_host:
            kwargs["base_url"] = self.settings.docker_host
        kwargs["timeout"] = self.settings.docker_timeout
        return kwargs

    def get_client(self) -> docker.APIClient:
        """Get the Docker API client, creating it if needed."""
        with self._lock:
            if self.client is not None:
                return self.client

            kwargs = self._client_kwargs()
            try:
                logger.info("Initializing Docker client", base_url=kwargs.get("base_url", "default"))
                self.client = docker.APIClient(**kwargs)
            except DockerException as e:
                self._initialization_error = str(e)
                logger.error("Failed to create Docker client", error=str(e))
                raise

            self._initialization_error = None
            return self.client

    def is_available(self) -> bool:
        """Check if the Docker daemon answers a ping."""
        try:
            return bool(self.get_client().ping())
        except DockerException as e:
            self._initialization_error = str(e)
            logger.warning("Docker daemon not reachable", error=str(e))
            return False

    def get_initialization_error(self) -> Optional[str]:
        """Get the last Docker initialization error, if any."""
        return self._initialization_error

    def close(self) -> None:
        """Close the Docker client connection."""
        with self._lock:
            if self.client is not None:
                self.client.close()
                self.client = None
