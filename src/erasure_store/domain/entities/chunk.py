"""Chunk windows over a shared storage resource.

A logical data source of ``size`` bytes is split into ``count`` shards of
``ceil(size / count)`` bytes each. Shard ``i`` is a ``ChunkWindow`` over
the absolute range ``[i * chunk_size, (i + 1) * chunk_size)`` of the same
``PositionedResource``. Together the windows tile ``[0, count * chunk_size)``;
everything past ``size`` is zero padding that is synthesized on read and
never has to exist on disk.

Ceiling division can add up to ``count - 1`` bytes of padding, so for tiny
sources several trailing windows may be entirely padding.
"""

from __future__ import annotations

import os

from erasure_store.ports.outbound.shard_resource import PositionedResource


def chunk_size_for(size: int, count: int) -> int:
    """Return the padded per-shard length for ``size`` bytes over ``count`` shards."""
    if count <= 0:
        raise ValueError(f"shard count must be positive, got {count}")
    if size < 0:
        raise ValueError(f"size must not be negative, got {size}")
    return -(-size // count)


def split_into_windows(resource: PositionedResource, size: int, count: int) -> list[ChunkWindow]:
    """Partition ``resource`` into ``count`` contiguous, zero-padded windows.

    Args:
        resource: Shared positioned-I/O resource holding the logical data.
        size: Logical data length in bytes.
        count: Number of windows (data shards).

    Returns:
        Windows in shard order.

    Raises:
        ValueError: If ``count`` is not positive or ``size`` is negative.
    """
    chunk_size = chunk_size_for(size, count)
    return [
        ChunkWindow(resource, start=i * chunk_size, limit=(i + 1) * chunk_size)
        for i in range(count)
    ]


class ChunkWindow:
    """Bounded, padding-aware view over ``[start, limit)`` of a shared resource.

    The window never reads or writes outside its own range, so windows
    produced by one ``split_into_windows`` call can be used independently.
    Reads past the physical end of the resource are zero-filled up to
    ``limit``; end of stream is reported only at the window boundary.

    Attributes:
        start: Inclusive absolute start offset.
        limit: Exclusive absolute end offset.
        position: Current offset relative to ``start``.
    """

    def __init__(self, resource: PositionedResource, start: int, limit: int) -> None:
        if start < 0 or limit < start:
            raise ValueError(f"Invalid window range [{start}, {limit})")
        self._resource = resource
        self.start = start
        self.limit = limit
        self.position = 0

    @property
    def length(self) -> int:
        """Window length in bytes, padding included."""
        return self.limit - self.start

    @property
    def remaining(self) -> int:
        """Bytes left between the current position and the window end."""
        return self.length - self.position

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes (the rest of the window if negative).

        Returns:
            Exactly ``min(size, remaining)`` bytes, zero-filled past the
            physical end of the resource; ``b""`` at the window end.
        """
        if self.remaining == 0:
            return b""
        if size is None or size < 0 or size > self.remaining:
            size = self.remaining
        if size == 0:
            return b""

        data = self._resource.read_at(size, self.start + self.position)
        if len(data) < size:
            data = data + b"\x00" * (size - len(data))
        self.position += size
        return data

    def readinto(self, buffer: bytearray | memoryview) -> int:
        """Read into a mutable buffer; returns the number of bytes produced."""
        view = memoryview(buffer).cast("B")
        data = self.read(len(view))
        view[: len(data)] = data
        return len(data)

    def write(self, data: bytes) -> int:
        """Write all of ``data`` at the current position.

        Raises:
            BoundsError: If ``data`` does not fit in the remaining window.
                Nothing is written in that case.
        """
        if len(data) > self.remaining:
            raise BoundsError(
                f"Cannot write {len(data)} bytes to chunk; Only {self.remaining} bytes left"
            )
        written = self._resource.write_at(bytes(data), self.start + self.position)
        self.position += written
        return written

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Move the position within the window's own coordinate space.

        Raises:
            InvalidArgumentError: If ``whence`` is not SEEK_SET, SEEK_CUR or SEEK_END.
            BoundsError: If the target lies outside ``[0, length]``. The
                position is left unchanged.
        """
        if whence == os.SEEK_SET:
            target = offset
        elif whence == os.SEEK_CUR:
            target = self.position + offset
        elif whence == os.SEEK_END:
            target = self.length + offset
        else:
            raise InvalidArgumentError(
                f"Got {whence}, expected one of: SEEK_SET, SEEK_CUR, SEEK_END"
            )

        if target > self.length:
            raise BoundsError(
                f"Requested position {target} is larger than chunk limit {self.length}"
            )
        if target < 0:
            raise BoundsError(
                f"Requested position {target} is smaller than chunk beginning 0"
            )

        self.position = target
        return self.position

    def tell(self) -> int:
        return self.position

    def modified_at(self) -> int:
        """Timestamp of the shared resource backing this window."""
        return self._resource.modified_at()

    def __repr__(self) -> str:
        return f"ChunkWindow(start={self.start}, limit={self.limit}, position={self.position})"


class BoundsError(ValueError):
    """Raised when a seek or write would leave a window's range."""

    pass


class InvalidArgumentError(ValueError):
    """Raised for an unsupported seek mode."""

    pass
