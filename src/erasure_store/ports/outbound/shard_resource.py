"""Shard resource ports for storage I/O.

These outbound ports define the storage capability the erasure store
depends on. A shard lives either in its own resource or in a byte range
of a shared resource (see ``ChunkWindow``), so the contracts are split in
two:

- ``PositionedResource``: absolute-offset reads and writes plus a
  modification timestamp. Windows are built on top of this.
- ``ShardStream``: a sequential, rewindable view of exactly one shard.
  Health checks, repair and self-healing reads consume this.

Timestamps:
    ``modified_at`` returns an integer that changes whenever the resource
    is written through its own API. Filesystem resources use
    ``st_mtime_ns``. Corruption that bypasses the write path (media bit
    rot) does not move the timestamp; callers relying on the read cache
    must run an explicit health check to catch that case.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, runtime_checkable


class PositionedResource(Protocol):
    """Protocol for random-access storage shared between shard windows.

    Thread Safety:
        Concurrent positioned I/O on disjoint ranges must be safe.
    """

    @abstractmethod
    def read_at(self, size: int, offset: int) -> bytes:
        """Read up to ``size`` bytes starting at absolute ``offset``.

        Returns fewer bytes (possibly none) when the resource ends first.
        """
        ...

    @abstractmethod
    def write_at(self, data: bytes, offset: int) -> int:
        """Write all of ``data`` at absolute ``offset``.

        Returns:
            Number of bytes written (always ``len(data)``).
        """
        ...

    @abstractmethod
    def modified_at(self) -> int:
        """Return the last-modification timestamp."""
        ...


class ShardStream(Protocol):
    """Protocol for a sequential, seekable view of a single shard."""

    @abstractmethod
    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes; ``b""`` signals end of shard."""
        ...

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write ``data`` at the current position."""
        ...

    @abstractmethod
    def seek(self, offset: int, whence: int = 0) -> int:
        """Move the current position; returns the new position."""
        ...

    @abstractmethod
    def modified_at(self) -> int:
        """Return the last-modification timestamp of the backing storage."""
        ...


@runtime_checkable
class TruncatableShard(ShardStream, Protocol):
    """A shard stream whose backing storage can be cut to a length.

    Repair truncates rebuilt shards that implement this, so bytes past the
    shard length do not survive. Windows over a shared resource do not.
    """

    @abstractmethod
    def truncate(self, size: int) -> int:
        """Resize the backing storage to ``size`` bytes."""
        ...
