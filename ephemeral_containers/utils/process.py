"""External process invocation."""

import shutil
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class CommandResult:
    """Captured outcome of an external command."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner:
    """Runs executables and captures their output.

    ``which`` resolves an executable name to a path (or None); tests swap it
    together with ``run`` to avoid touching the real PATH.
    """

    def __init__(self, which: Callable[[str], Optional[str]] = shutil.which, timeout: Optional[float] = 30):
        self._which = which
        self.timeout = timeout

    def which(self, executable: str) -> Optional[str]:
        """Locate an executable, returning None when it is not installed."""
        return self._which(executable)

    def run(self, args: List[str], input: Optional[str] = None) -> CommandResult:
        """Run a command to completion with captured stdout/stderr."""
        logger.debug("Running external command", command=args[0])
        result = subprocess.run(  # nosec B603 - argv list, no shell
            args,
            input=input,
            capture_output=True,
            text=True,
            check=False,
            timeout=self.timeout,
        )
        return CommandResult(exit_code=result.returncode, stdout=result.stdout, stderr=result.stderr)
