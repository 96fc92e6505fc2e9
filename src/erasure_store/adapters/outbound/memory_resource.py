"""In-memory shard resource for testing and small shard sets."""

from __future__ import annotations

import os
import threading
import time


class MemoryResource:
    """A bytearray usable as a ``PositionedResource`` and a ``ShardStream``.

    Every write through the resource's own methods bumps the modification
    stamp to a strictly larger value. Mutating ``buffer`` directly does
    not, which is how silent media corruption looks to the read cache.
    """

    def __init__(self, initial: bytes = b"") -> None:
        self.buffer = bytearray(initial)
        self._position = 0
        self._lock = threading.Lock()
        self._stamp = time.time_ns()

    def getvalue(self) -> bytes:
        return bytes(self.buffer)

    def _touch(self) -> None:
        self._stamp = max(time.time_ns(), self._stamp + 1)

    def touch(self) -> None:
        """Mark the resource as modified without changing its contents."""
        with self._lock:
            self._touch()

    # -- positioned I/O --------------------------------------------------------

    def read_at(self, size: int, offset: int) -> bytes:
        with self._lock:
            return bytes(self.buffer[offset : offset + size])

    def write_at(self, data: bytes, offset: int) -> int:
        data = bytes(data)
        with self._lock:
            end = offset + len(data)
            if offset > len(self.buffer):
                self.buffer.extend(b"\x00" * (offset - len(self.buffer)))
            self.buffer[offset:end] = data
            self._touch()
        return len(data)

    def modified_at(self) -> int:
        return self._stamp

    # -- sequential I/O --------------------------------------------------------

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = max(0, len(self.buffer) - self._position)
        data = self.read_at(size, self._position)
        self._position += len(data)
        return data

    def write(self, data: bytes) -> int:
        written = self.write_at(data, self._position)
        self._position += written
        return written

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        if whence == os.SEEK_SET:
            target = offset
        elif whence == os.SEEK_CUR:
            target = self._position + offset
        elif whence == os.SEEK_END:
            target = len(self.buffer) + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        if target < 0:
            raise ValueError(f"Negative seek position {target}")
        self._position = target
        return target

    def tell(self) -> int:
        return self._position

    def truncate(self, size: int | None = None) -> int:
        """Cut the buffer to ``size`` bytes (the current position by default)."""
        if size is None:
            size = self._position
        with self._lock:
            del self.buffer[size:]
            self._touch()
        return size

    def __len__(self) -> int:
        return len(self.buffer)
