"""File-based shard resource.

Implements both storage ports on top of a local file opened unbuffered,
so positioned I/O (``os.pread``/``os.pwrite``) and sequential I/O never see
stale buffers. The modification timestamp is ``st_mtime_ns``.

Thread Safety:
    Positioned reads and writes are safe to issue concurrently on
    disjoint ranges. Sequential ``read``/``write``/``seek`` share one file
    position and must not be mixed across threads.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO


class FileResource:
    """A local file usable as a ``PositionedResource`` and a ``ShardStream``."""

    def __init__(self, path: str | Path, create: bool = False) -> None:
        """Open ``path`` for reading and writing.

        Args:
            path: File to open.
            create: Create (and truncate) the file instead of opening it.

        Raises:
            FileNotFoundError: If the file does not exist and ``create`` is False.
        """
        self.path = Path(path)
        if create:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        mode = "w+b" if create else "r+b"
        self._file: BinaryIO = open(self.path, mode, buffering=0)

    @classmethod
    def create(cls, path: str | Path) -> FileResource:
        """Create an empty file, replacing any existing one."""
        return cls(path, create=True)

    @property
    def closed(self) -> bool:
        return self._file.closed

    def fileno(self) -> int:
        return self._file.fileno()

    # -- positioned I/O --------------------------------------------------------

    def read_at(self, size: int, offset: int) -> bytes:
        parts = []
        remaining = size
        while remaining > 0:
            chunk = os.pread(self.fileno(), remaining, offset)
            if not chunk:
                break
            parts.append(chunk)
            offset += len(chunk)
            remaining -= len(chunk)
        return b"".join(parts)

    def write_at(self, data: bytes, offset: int) -> int:
        view = memoryview(data)
        total = len(view)
        while view:
            written = os.pwrite(self.fileno(), view, offset)
            offset += written
            view = view[written:]
        return total

    def modified_at(self) -> int:
        return os.fstat(self.fileno()).st_mtime_ns

    def size(self) -> int:
        return os.fstat(self.fileno()).st_size

    # -- sequential I/O --------------------------------------------------------

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            return self._file.readall()
        parts = []
        remaining = size
        while remaining > 0:
            chunk = self._file.read(remaining)
            if not chunk:
                break
            parts.append(chunk)
            remaining -= len(chunk)
        return b"".join(parts)

    def write(self, data: bytes) -> int:
        view = memoryview(data)
        total = len(view)
        while view:
            written = self._file.write(view)
            view = view[written:]
        return total

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        return self._file.tell()

    def truncate(self, size: int | None = None) -> int:
        return self._file.truncate(size)

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> FileResource:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FileResource(path={str(self.path)!r})"
