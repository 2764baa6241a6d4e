"""Tar archive builder for copying files into containers."""

import io
import os
import posixpath
import shutil
import tarfile
import tempfile
from typing import List, Optional, Union

import structlog

from ..models.archive import ArchiveEntry, ContentEntry, DirectoryEntry, FileEntry
from ..models.errors import ArchiveEntryError

logger = structlog.get_logger(__name__)


def _relative_target(target: str) -> str:
    """Normalize a target path to a path relative to the extraction root."""
    relative = posixpath.normpath(target.replace("\\", "/").lstrip("/"))
    if relative == ".." or relative.startswith("../"):
        raise ArchiveEntryError(f"Target path escapes the archive root: {target}")
    return relative


def _root_owner(tarinfo: tarfile.TarInfo) -> tarfile.TarInfo:
    tarinfo.uid = tarinfo.gid = 0
    tarinfo.uname = tarinfo.gname = "root"
    return tarinfo


class ArchiveBuilder:
    """Collects files, directories and inline content into a tar stream.

    Entries are validated when added. Every call to :meth:`build_archive`
    stages the entries in a fresh temporary directory, so the builder can be
    reused and archives that were already built are never affected.
    """

    def __init__(self):
        self._entries: List[ArchiveEntry] = []

    @property
    def entries(self) -> List[ArchiveEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, entry: ArchiveEntry) -> "ArchiveBuilder":
        """Add an already constructed entry."""
        if not isinstance(entry, (FileEntry, DirectoryEntry, ContentEntry)):
            raise ArchiveEntryError(f"Unsupported archive entry: {entry!r}")
        if _relative_target(entry.target) == "." and not isinstance(entry, DirectoryEntry):
            raise ArchiveEntryError(f"Target path must name a file, not the archive root: {entry.target}")
        self._entries.append(entry)
        return self

    def add_file(self, source: str, target: str, mode: Optional[int] = None) -> "ArchiveBuilder":
        """Add a single file from the local filesystem."""
        return self.add(FileEntry(source=os.fspath(source), target=target, mode=mode))

    def add_directory(self, source: str, target: str, mode: Optional[int] = None) -> "ArchiveBuilder":
        """Add a directory (recursively) from the local filesystem."""
        return self.add(DirectoryEntry(source=os.fspath(source), target=target, mode=mode))

    def add_content(self, content: Union[str, bytes], target: str, mode: Optional[int] = None) -> "ArchiveBuilder":
        """Add inline content that becomes a file in the archive."""
        return self.add(ContentEntry(content=content, target=target, mode=mode))

    def clear(self) -> None:
        """Discard all pending entries."""
        self._entries = []

    def build_archive(self) -> bytes:
        """Build an uncompressed tar archive from everything added so far."""
        with tempfile.TemporaryDirectory(prefix="ec_files_") as staging:
            for entry in self._entries:
                self._stage(staging, entry)

            buffer = io.BytesIO()
            with tarfile.open(fileobj=buffer, mode="w", format=tarfile.PAX_FORMAT) as tar:
                for name in sorted(os.listdir(staging)):
                    tar.add(os.path.join(staging, name), arcname=name, filter=_root_owner)

        data = buffer.getvalue()
        logger.debug("Built tar archive", entries=len(self._entries), size_bytes=len(data))
        return data

    def _stage(self, staging: str, entry: ArchiveEntry) -> None:
        dest = os.path.join(staging, *_relative_target(entry.target).split("/"))

        if isinstance(entry, FileEntry):
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            shutil.copy2(entry.source, dest)
        elif isinstance(entry, DirectoryEntry):
            # copy2 keeps the source permission bits of every file and directory
            shutil.copytree(entry.source, dest, dirs_exist_ok=True)
        else:
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            with open(dest, "wb") as f:
                f.write(entry.content)

        if entry.mode is not None:
            os.chmod(dest, entry.mode)
