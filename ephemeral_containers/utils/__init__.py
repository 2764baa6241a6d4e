"""Utility modules for ephemeral-containers."""

from .archive import ArchiveBuilder
from .logging import setup_logging
from .ports import (
    FixedPortAllocator,
    PortAllocator,
    RandomUniquePortAllocator,
    get_default_port_allocator,
)
from .process import CommandResult, CommandRunner

__all__ = [
    "ArchiveBuilder",
    "CommandResult",
    "CommandRunner",
    "FixedPortAllocator",
    "PortAllocator",
    "RandomUniquePortAllocator",
    "get_default_port_allocator",
    "setup_logging",
]
