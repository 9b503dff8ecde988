"""
Source providers — where file bytes are read from and written to.

The executor only relies on the :class:`SourceProvider` protocol.  Two
implementations ship with the package:

* :class:`FileSystemSource` reads and writes files on disk (atomic write
  via temp file + rename), optionally preferring open editor buffers that
  hold unsaved edits;
* :class:`MemorySource` keeps everything in a dict, for tests and dry runs.
"""

from __future__ import annotations

import logging
import os
import shutil
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class SourceProvider(Protocol):
    def get_content(self, path: str) -> bytes: ...

    def set_content(self, path: str, content: bytes) -> None: ...

    def exists(self, path: str) -> bool: ...


class FileSystemSource:
    """Disk-backed provider with optional in-memory editor buffers.

    Parameters
    ----------
    root:
        Directory relative paths are resolved against.  Defaults to CWD.
    buffers:
        Mapping of path → unsaved buffer content.  A buffered path is read
        from the buffer instead of disk; writes update both.
    write_through:
        When False, writes only update the buffers (dry run).
    """

    def __init__(
        self,
        root: Optional[str] = None,
        buffers: Optional[dict[str, bytes]] = None,
        write_through: bool = True,
    ) -> None:
        self.root = os.path.abspath(root or os.getcwd())
        self._buffers: dict[str, bytes] = {}
        for path, content in (buffers or {}).items():
            self.open_buffer(path, content)
        self.write_through = write_through

    def resolve(self, path: str) -> str:
        return os.path.normpath(os.path.join(self.root, os.path.expanduser(path)))

    def open_buffer(self, path: str, content: bytes) -> None:
        self._buffers[self.resolve(path)] = bytes(content)

    def buffer(self, path: str) -> Optional[bytes]:
        return self._buffers.get(self.resolve(path))

    def get_content(self, path: str) -> bytes:
        abs_path = self.resolve(path)
        if abs_path in self._buffers:
            return self._buffers[abs_path]
        with open(abs_path, "rb") as f:
            return f.read()

    def set_content(self, path: str, content: bytes) -> None:
        abs_path = self.resolve(path)
        if abs_path in self._buffers or not self.write_through:
            self._buffers[abs_path] = bytes(content)
        if self.write_through:
            safe_write(abs_path, content)

    def exists(self, path: str) -> bool:
        abs_path = self.resolve(path)
        return abs_path in self._buffers or os.path.exists(abs_path)


class MemorySource:
    """Provider backed by a plain dict of path → bytes."""

    def __init__(self, files: Optional[dict[str, bytes]] = None) -> None:
        self.files: dict[str, bytes] = dict(files or {})
        self.writes: list[str] = []

    def get_content(self, path: str) -> bytes:
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    def set_content(self, path: str, content: bytes) -> None:
        self.files[path] = bytes(content)
        self.writes.append(path)

    def exists(self, path: str) -> bool:
        return path in self.files


def safe_write(file_path: str, content: bytes) -> None:
    """Write *content* atomically via temp file + rename."""
    abs_path = os.path.abspath(file_path)
    directory = os.path.dirname(abs_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = abs_path + ".edlkit_tmp"

    try:
        with open(tmp_path, "wb") as f:
            f.write(content)

        # On Windows, os.rename fails if destination exists
        if os.path.exists(abs_path):
            shutil.move(tmp_path, abs_path)
        else:
            os.rename(tmp_path, abs_path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    logger.debug("[EDL] Wrote %d bytes to %s", len(content), abs_path)
