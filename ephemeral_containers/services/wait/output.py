"""Readiness based on command output or the container log."""

import re
from typing import TYPE_CHECKING, List, Optional, Pattern, Union

import structlog

from .base import BaseWaitStrategy

if TYPE_CHECKING:
    from ..container.started import StartedContainer

logger = structlog.get_logger(__name__)


class WaitForExec(BaseWaitStrategy):
    """Ready once a command run inside the container produces the expected result.

    With ``expected_output`` the output must equal it, or contain it when
    ``contains`` is set. Without ``expected_output`` the command must exit
    with code 0.
    """

    def __init__(
        self,
        command: Union[str, List[str]],
        expected_output: Optional[str] = None,
        contains: bool = False,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.command = command
        self.expected_output = expected_output
        self.contains = contains

    def is_ready(self, container: "StartedContainer") -> bool:
        if self.expected_output is None:
            return container.exec_run(self.command).exit_code == 0

        output = container.exec(self.command)
        if self.contains:
            return self.expected_output in output
        return output.strip() == self.expected_output.strip()


class WaitForLog(BaseWaitStrategy):
    """Ready once the container log contains a message.

    ``message`` is a plain substring unless ``regex`` is set or a compiled
    pattern is passed. With ``times`` the message must appear at least that
    many times.
    """

    def __init__(
        self,
        message: Union[str, Pattern[str]],
        regex: bool = False,
        times: int = 1,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if isinstance(message, str) and regex:
            message = re.compile(message)
        self.message = message
        self.times = times

    def count_matches(self, logs: str) -> int:
        if isinstance(self.message, str):
            return logs.count(self.message)
        return len(self.message.findall(logs))

    def is_ready(self, container: "StartedContainer") -> bool:
        return self.count_matches(container.logs()) >= self.times
