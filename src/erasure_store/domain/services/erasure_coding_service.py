"""Erasure coding service.

Streams shards through Reed-Solomon coding provided by ``zfec``. Shards are
processed in rounds of ``block_size`` bytes: every round reads one block
per input shard, codes those blocks, and writes one block per output
shard. Reed-Solomon works byte column by byte column, so coding a shard
set in rounds gives the same result as coding it in one piece, while
memory use stays at ``block_size`` bytes per shard.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional, Protocol

import zfec

from erasure_store.domain.entities.metadata import MAX_TOTAL_SHARDS


class Reader(Protocol):
    def read(self, size: int = -1) -> bytes: ...


class Writer(Protocol):
    def write(self, data: bytes) -> int: ...


def _read_block(reader: Reader, size: int) -> bytes:
    """Read until ``size`` bytes are collected or the reader is exhausted."""
    block = reader.read(size)
    if len(block) == size or not block:
        return block
    parts = [block]
    collected = len(block)
    while collected < size:
        more = reader.read(size - collected)
        if not more:
            break
        parts.append(more)
        collected += len(more)
    return b"".join(parts)


def _write_all(writer: Writer, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = writer.write(view)
        if written is None:
            written = len(view)
        view = view[written:]


class ErasureCodingService:
    """Streaming Reed-Solomon coder for a fixed data/parity layout."""

    def __init__(self, data_shards: int = 4, parity_shards: int = 2, block_size: int = 64 * 1024):
        """Initialize erasure coding.

        Args:
            data_shards: Number of data shards.
            parity_shards: Number of parity shards.
            block_size: Bytes read from each shard per coding round.

        Raises:
            ValueError: If the layout cannot be coded.
        """
        if data_shards < 1:
            raise ValueError(f"data_shards must be at least 1, got {data_shards}")
        if parity_shards < 1:
            raise ValueError(f"parity_shards must be at least 1, got {parity_shards}")
        if data_shards + parity_shards > MAX_TOTAL_SHARDS:
            raise ValueError(
                f"data_shards + parity_shards must not exceed {MAX_TOTAL_SHARDS}"
            )
        if block_size < 1:
            raise ValueError(f"block_size must be positive, got {block_size}")

        self.data_shards = data_shards
        self.parity_shards = parity_shards
        self.total_shards = data_shards + parity_shards
        self.block_size = block_size
        self._encoder = zfec.Encoder(data_shards, self.total_shards)
        self._decoder = zfec.Decoder(data_shards, self.total_shards)

    def encode(self, readers: Sequence[Reader], writers: Sequence[Writer]) -> int:
        """Produce parity shards from data shards.

        Args:
            readers: One reader per data shard.
            writers: One writer per parity shard.

        Returns:
            Length of each shard in bytes.

        Raises:
            EncodingError: On a wrong number of readers or writers, or when
                the data shards are not all the same length.
        """
        if len(readers) != self.data_shards:
            raise EncodingError(
                f"Expected {self.data_shards} data shards, got {len(readers)}"
            )
        if len(writers) != self.parity_shards:
            raise EncodingError(
                f"Expected {self.parity_shards} parity shards, got {len(writers)}"
            )

        parity_nums = list(range(self.data_shards, self.total_shards))
        shard_length = 0
        while True:
            blocks = [_read_block(reader, self.block_size) for reader in readers]
            block_len = self._common_length(blocks)
            if block_len == 0:
                return shard_length

            parity_blocks = self._code(self._encoder.encode, blocks, parity_nums)
            for writer, block in zip(writers, parity_blocks):
                _write_all(writer, bytes(block))
            shard_length += block_len

    def reconstruct(
        self,
        readers: Sequence[Optional[Reader]],
        writers: Sequence[Optional[Writer]],
    ) -> list[int]:
        """Rebuild missing shards from the present ones.

        Args:
            readers: One entry per shard; ``None`` marks the shard as missing.
            writers: One entry per shard; every missing shard needs a writer,
                other entries are ignored.

        Returns:
            Indices of the shards that were rebuilt.

        Raises:
            EncodingError: On a wrong number of entries, too few present
                shards, a missing shard without a writer, or present shards
                of unequal length.
        """
        if len(readers) != self.total_shards or len(writers) != self.total_shards:
            raise EncodingError(
                f"Expected {self.total_shards} shard slots, "
                f"got {len(readers)} readers and {len(writers)} writers"
            )

        present = [i for i, reader in enumerate(readers) if reader is not None]
        missing = [i for i, reader in enumerate(readers) if reader is None]
        if not missing:
            return []
        if not self.can_recover(len(present)):
            raise EncodingError(
                f"too few shards given: need {self.min_shards_required()}, got {len(present)}"
            )
        for index in missing:
            if writers[index] is None:
                raise EncodingError(f"No writer supplied for missing shard {index}")

        # Any k present shards determine the rest.
        sources = present[: self.data_shards]
        missing_parity = [i for i in missing if i >= self.data_shards]

        while True:
            blocks = {i: _read_block(readers[i], self.block_size) for i in present}
            block_len = self._common_length(list(blocks.values()))
            if block_len == 0:
                return missing

            primaries = self._code(
                self._decoder.decode,
                [blocks[i] for i in sources],
                sources,
            )
            rebuilt = {i: primaries[i] for i in missing if i < self.data_shards}
            if missing_parity:
                parity_blocks = self._code(
                    self._encoder.encode,
                    [bytes(block) for block in primaries],
                    missing_parity,
                )
                rebuilt.update(zip(missing_parity, parity_blocks))

            for index in missing:
                _write_all(writers[index], bytes(rebuilt[index]))

    def can_recover(self, available_shards: int) -> bool:
        """Check if data can be recovered.

        Args:
            available_shards: Number of available shards.

        Returns:
            True if recoverable.
        """
        return available_shards >= self.data_shards

    def min_shards_required(self) -> int:
        """Minimum shards needed for recovery.

        Returns:
            Minimum shard count.
        """
        return self.data_shards

    @staticmethod
    def _common_length(blocks: list[bytes]) -> int:
        lengths = {len(block) for block in blocks}
        if len(lengths) > 1:
            raise EncodingError(
                f"shard sizes do not match: got block lengths {sorted(lengths)}"
            )
        return lengths.pop() if lengths else 0

    @staticmethod
    def _code(operation, blocks, blocknums):
        try:
            return operation(blocks, blocknums)
        except (ValueError, TypeError, zfec.Error) as exc:
            raise EncodingError(f"Reed-Solomon coding failed: {exc}") from exc


class EncodingError(Exception):
    """Raised when the erasure coder cannot process the given shards."""

    pass
