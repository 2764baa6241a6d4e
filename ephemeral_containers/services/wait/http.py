"""Readiness based on an HTTP endpoint answering with an expected status."""

from typing import TYPE_CHECKING, Dict, Optional, Union

import httpx
import structlog

from ...models.container import HttpMethod
from ...models.errors import PortNotFoundError
from .base import BaseWaitStrategy

if TYPE_CHECKING:
    from ..container.started import StartedContainer

logger = structlog.get_logger(__name__)

DEFAULT_READ_TIMEOUT = 1.0


class WaitForHttp(BaseWaitStrategy):
    """Ready once an HTTP request to a container port returns the expected status."""

    settings_timeouts = ("read_timeout",)

    def __init__(
        self,
        port: Union[int, str],
        method: Union[HttpMethod, str] = HttpMethod.GET,
        path: str = "/",
        https: bool = False,
        expected_status_code: int = 200,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        allow_insecure: bool = False,
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ):
        """Initialize the strategy.

        Args:
            port: Container port the endpoint listens on
            method: HTTP method
            path: Request path
            https: Use ``https`` instead of ``http``
            expected_status_code: Status that marks the container ready
            read_timeout: Limit for a single request in seconds
            allow_insecure: Skip TLS certificate verification
            headers: Extra request headers
            **kwargs: ``timeout`` and ``poll_interval`` for the polling loop
        """
        super().__init__(**kwargs)
        self.port = port
        self.method = HttpMethod.from_string(method) if isinstance(method, str) else method
        self.path = path
        self.https = https
        self.expected_status_code = expected_status_code
        self.read_timeout = read_timeout
        self.allow_insecure = allow_insecure
        self.headers: Dict[str, str] = dict(headers or {})

    def with_method(self, method: Union[HttpMethod, str]) -> "WaitForHttp":
        self.method = HttpMethod.from_string(method) if isinstance(method, str) else method
        return self

    def with_path(self, path: str) -> "WaitForHttp":
        self.path = path
        return self

    def using_https(self) -> "WaitForHttp":
        self.https = True
        return self

    def with_expected_status_code(self, status_code: int) -> "WaitForHttp":
        self.expected_status_code = status_code
        return self

    def with_read_timeout(self, read_timeout: float) -> "WaitForHttp":
        self.read_timeout = read_timeout
        return self

    def with_headers(self, headers: Dict[str, str]) -> "WaitForHttp":
        self.headers.update(headers)
        return self

    def insecure(self, allow_insecure: bool = True) -> "WaitForHttp":
        """Accept self-signed or otherwise invalid TLS certificates."""
        self.allow_insecure = allow_insecure
        return self

    def build_url(self, container: "StartedContainer") -> str:
        host = container.get_host()
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        scheme = "https" if self.https else "http"
        path = self.path if self.path.startswith("/") else f"/{self.path}"
        return f"{scheme}://{host}:{container.get_mapped_port(self.port)}{path}"

    def is_ready(self, container: "StartedContainer") -> bool:
        try:
            url = self.build_url(container)
        except PortNotFoundError:
            container.invalidate()
            return False

        try:
            with httpx.Client(verify=not self.allow_insecure, timeout=self.read_timeout) as client:
                response = client.request(self.method.value, url, headers=self.headers)
        except httpx.HTTPError as e:
            logger.debug("HTTP readiness probe failed", url=url, error=str(e))
            return False

        if response.status_code != self.expected_status_code:
            logger.debug(
                "Unexpected HTTP status",
                url=url,
                status_code=response.status_code,
                expected=self.expected_status_code,
            )
            return False
        return True
