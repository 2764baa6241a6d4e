"""Polling loop shared by all readiness strategies."""

import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Tuple

import structlog

from ...config import Settings
from ...models.errors import WaitTimeoutError

if TYPE_CHECKING:
    from ..container.started import StartedContainer

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_POLL_INTERVAL = 0.5


class BaseWaitStrategy(ABC):
    """Polls a readiness probe until it succeeds or the timeout elapses.

    The deadline is checked immediately before every probe, so an expired
    deadline fails without probing again. Between unsuccessful probes the
    strategy sleeps for ``poll_interval`` seconds.
    """

    # Extra WaitConfig fields that from_settings() passes as keyword arguments
    settings_timeouts: Tuple[str, ...] = ()

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, *args, **kwargs) -> "BaseWaitStrategy":
        """Build the strategy with timings from settings unless passed explicitly."""
        wait = settings.wait
        kwargs.setdefault("timeout", wait.timeout)
        kwargs.setdefault("poll_interval", wait.poll_interval)
        for name in cls.settings_timeouts:
            kwargs.setdefault(name, getattr(wait, name))
        return cls(*args, **kwargs)

    def with_timeout(self, timeout: float) -> "BaseWaitStrategy":
        self.timeout = timeout
        return self

    def with_poll_interval(self, poll_interval: float) -> "BaseWaitStrategy":
        self.poll_interval = poll_interval
        return self

    @abstractmethod
    def is_ready(self, container: "StartedContainer") -> bool:
        """Run one probe against the container."""

    def wait(self, container: "StartedContainer") -> None:
        """Block until the container is ready.

        Raises:
            WaitTimeoutError: The timeout elapsed before a probe succeeded
        """
        started = self._clock()
        attempts = 0

        while True:
            if self._clock() - started > self.timeout:
                logger.warning(
                    "Container readiness timed out",
                    container_id=container.id[:12],
                    strategy=type(self).__name__,
                    timeout=self.timeout,
                    attempts=attempts,
                )
                raise WaitTimeoutError(container.id, self.timeout)

            attempts += 1
            if self.is_ready(container):
                logger.debug(
                    "Container ready",
                    container_id=container.id[:12],
                    strategy=type(self).__name__,
                    attempts=attempts,
                )
                return

            self._sleep(self.poll_interval)
