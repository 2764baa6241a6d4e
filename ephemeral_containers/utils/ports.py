"""Host port allocation for container port bindings."""

import random
import socket
import threading
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set

import structlog

from ..models.errors import PortAllocationError

logger = structlog.get_logger(__name__)

DEFAULT_PORT_RANGE = (49152, 65535)


def is_port_free(port: int, host: str = "") -> bool:
    """Check whether a TCP port can be bound on this host."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
            return True
        except OSError:
            return False


class PortAllocator(ABC):
    """Hands out host ports for exposed container ports."""

    @abstractmethod
    def allocate(self) -> int:
        """Return a host port."""

    def release(self, port: int) -> None:
        """Return a port once the container using it is gone."""


class RandomUniquePortAllocator(PortAllocator):
    """Random ports from a range; an issued port is not reused until released.

    Safe to share between threads; the issued-port registry is lock-guarded.
    """

    def __init__(
        self,
        start: int = DEFAULT_PORT_RANGE[0],
        end: int = DEFAULT_PORT_RANGE[1],
        max_attempts: int = 100,
        rng: Optional[random.Random] = None,
    ):
        if start > end:
            raise ValueError(f"Invalid port range: {start}-{end}")
        self.start = start
        self.end = end
        self.max_attempts = max_attempts
        self._rng = rng or random.SystemRandom()
        self._issued: Set[int] = set()
        self._lock = threading.Lock()

    def allocate(self) -> int:
        with self._lock:
            for _ in range(self.max_attempts):
                port = self._rng.randint(self.start, self.end)
                if port in self._issued:
                    continue
                if not is_port_free(port):
                    continue
                self._issued.add(port)
                return port

        logger.warning(
            "Port allocation failed",
            range_start=self.start,
            range_end=self.end,
            issued=len(self._issued),
        )
        raise PortAllocationError(
            f"No free host port found in {self.start}-{self.end} after {self.max_attempts} attempts"
        )

    def release(self, port: int) -> None:
        """Allow a previously issued port to be handed out again."""
        with self._lock:
            self._issued.discard(port)

    @property
    def issued(self) -> Set[int]:
        with self._lock:
            return set(self._issued)


class FixedPortAllocator(PortAllocator):
    """Hands out a predetermined list of ports in order."""

    def __init__(self, ports: Iterable[int]):
        self._ports: List[int] = list(ports)
        self._index = 0
        self._lock = threading.Lock()

    def allocate(self) -> int:
        with self._lock:
            if self._index >= len(self._ports):
                raise PortAllocationError(f"Fixed port list exhausted after {len(self._ports)} ports")
            port = self._ports[self._index]
            self._index += 1
            return port


_default_allocator: Optional[RandomUniquePortAllocator] = None
_default_allocator_lock = threading.Lock()


def get_default_port_allocator(
    start: int = DEFAULT_PORT_RANGE[0], end: int = DEFAULT_PORT_RANGE[1]
) -> RandomUniquePortAllocator:
    """Process-wide allocator shared by containers that do not set their own.

    The range only applies to the call that creates the allocator.
    """
    global _default_allocator
    with _default_allocator_lock:
        if _default_allocator is None:
            _default_allocator = RandomUniquePortAllocator(start=start, end=end)
        return _default_allocator
