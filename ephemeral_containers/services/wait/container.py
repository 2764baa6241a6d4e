"""Readiness based on the runtime's own container state."""

from typing import TYPE_CHECKING

from .base import BaseWaitStrategy

if TYPE_CHECKING:
    from ..container.started import StartedContainer


class WaitForContainer(BaseWaitStrategy):
    """Ready once the runtime reports the container as running."""

    def is_ready(self, container: "StartedContainer") -> bool:
        state = container.inspect(refresh=True).get("State") or {}
        return bool(state.get("Running"))


class WaitForHealthCheck(BaseWaitStrategy):
    """Ready once the container's health check reports ``healthy``.

    Requires a health check, either from the image or from
    ``GenericContainer.with_health_check_command``.
    """

    def is_ready(self, container: "StartedContainer") -> bool:
        state = container.inspect(refresh=True).get("State") or {}
        health = state.get("Health") or {}
        return health.get("Status") == "healthy"
