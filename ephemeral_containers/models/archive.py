"""Archive entry models.

An archive entry is one of three variants: a host file, a host directory
copied recursively, or inline content. Entries are validated on construction.
"""

import os
from dataclasses import dataclass
from typing import Optional, Union

from .errors import ArchiveEntryError

MAX_MODE = 0o777


def _validate_target(target: str) -> None:
    if not target:
        raise ArchiveEntryError("Target path cannot be empty")


def _validate_mode(mode: Optional[int], what: str) -> None:
    if mode is not None and (isinstance(mode, bool) or not 0 <= mode <= MAX_MODE):
        raise ArchiveEntryError(f"Invalid mode for {what}: {mode}")


@dataclass(frozen=True)
class FileEntry:
    """Single host file placed at ``target``."""

    source: str
    target: str
    mode: Optional[int] = None

    def __post_init__(self):
        if not os.path.isfile(self.source):
            raise ArchiveEntryError(f"Invalid file path: {self.source}")
        _validate_target(self.target)
        _validate_mode(self.mode, "file")


@dataclass(frozen=True)
class DirectoryEntry:
    """Host directory copied recursively to ``target``."""

    source: str
    target: str
    mode: Optional[int] = None

    def __post_init__(self):
        if not os.path.isdir(self.source):
            raise ArchiveEntryError(f"Invalid directory path: {self.source}")
        _validate_target(self.target)
        _validate_mode(self.mode, "directory")


@dataclass(frozen=True)
class ContentEntry:
    """Inline bytes written as a file at ``target``."""

    content: bytes
    target: str
    mode: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.content, str):
            object.__setattr__(self, "content", self.content.encode("utf-8"))
        _validate_target(self.target)
        _validate_mode(self.mode, "content")


ArchiveEntry = Union[FileEntry, DirectoryEntry, ContentEntry]
