"""Readiness strategies run after a container has started."""

from .base import BaseWaitStrategy
from .container import WaitForContainer, WaitForHealthCheck
from .http import WaitForHttp
from .output import WaitForExec, WaitForLog
from .port import WaitForHostPort

__all__ = [
    "BaseWaitStrategy",
    "WaitForContainer",
    "WaitForExec",
    "WaitForHealthCheck",
    "WaitForHostPort",
    "WaitForHttp",
    "WaitForLog",
]
