"""Shard health manager: corruption detection, repair and self-healing reads.

Detection rehashes shards and compares them to the hashes recorded in
``Metadata``. Repair hands the corrupt shards to the erasure coder as
missing inputs and lets it rebuild them in place. The self-healing read
escalates from detection to repair before serving any data.

Read cache:
    ``read`` keeps the last modification timestamp seen for every shard
    and only rehashes shards whose timestamp moved. This assumes every
    source of corruption also updates the timestamp, which holds for
    writes through the filesystem but not for silent media corruption.
    ``check_health`` and ``repair`` always rehash everything.

Repair:
    Rebuilt shards that support ``truncate`` are cut to the shard length,
    so a shard that grew past it is healthy again afterwards.

Concurrency:
    ``repair`` rewrites shard resources in place. Callers must make sure
    no other read or write touches the same resources while it runs.
"""

from __future__ import annotations

import os
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Protocol

from erasure_store.domain.entities.chunk import split_into_windows
from erasure_store.domain.entities.metadata import CorruptShard, Metadata
from erasure_store.domain.services.erasure_coding_service import (
    EncodingError,
    ErasureCodingService,
)
from erasure_store.domain.services.hashing import hash_stream
from erasure_store.infrastructure.config import Config, get_config
from erasure_store.infrastructure.container import Container, get_container
from erasure_store.infrastructure.logging import get_logger
from erasure_store.infrastructure.metrics import get_metrics
from erasure_store.infrastructure.tracing import shard_span
from erasure_store.ports.outbound.shard_resource import (
    PositionedResource,
    ShardStream,
    TruncatableShard,
)

logger = get_logger(__name__)


class Destination(Protocol):
    def write(self, data: bytes) -> int: ...


class ShardHealthManager:
    """Checks, repairs and reads back an encoded shard set.

    Shards are addressed by position: ``shards[i]`` must hold the shard
    whose hash is ``metadata.hashes[i]``. Every shard must be rewindable
    (``seek(0)``), and corrupt shards must be writable for ``repair``.

    Example:
        manager = ShardHealthManager.open(data_file, [parity_file], metadata)
        manager.check_health()          # raises IntegrityError on mismatch
        manager.repair()                # rebuilds up to parity_shards shards
        manager.read(output)            # checks, repairs if needed, copies data
    """

    def __init__(
        self,
        shards: Sequence[ShardStream],
        metadata: Metadata,
        coder: Optional[ErasureCodingService] = None,
        hash_workers: Optional[int] = None,
        config: Optional[Config] = None,
    ) -> None:
        """Initialize the manager.

        Args:
            shards: Data shards followed by parity shards.
            metadata: Metadata recorded when the shards were encoded.
            coder: Erasure coder; built from config if omitted.
            hash_workers: Threads used to hash shards; defaults to config.
            config: Settings for defaults; the cached global config if omitted.

        Raises:
            ValueError: If the shard count does not match the metadata.
        """
        if len(shards) != metadata.total_shards:
            raise ValueError(
                f"Expected {metadata.total_shards} shards, got {len(shards)}"
            )
        config = config or get_config()
        self.shards = list(shards)
        self.metadata = metadata
        self.hash_algorithm = metadata.hash_algorithm
        self.hash_workers = hash_workers or config.integrity.hash_workers
        self._block_size = config.erasure_coding.block_size
        self._coder = coder or ErasureCodingService(
            metadata.data_shards,
            metadata.parity_shards,
            block_size=self._block_size,
        )
        # Last modification timestamp seen per shard; None until first read.
        self._mtimes: list[Optional[int]] = [None] * metadata.total_shards

    @classmethod
    def open(
        cls,
        data: PositionedResource,
        parity: Sequence[ShardStream],
        metadata: Metadata,
        **kwargs,
    ) -> ShardHealthManager:
        """Build a manager over one data resource and its parity shards.

        The data resource is split into ``metadata.data_shards`` padded
        windows covering ``metadata.size`` bytes.

        Raises:
            ValueError: If the number of parity shards does not match.
        """
        if len(parity) != metadata.parity_shards:
            raise ValueError(
                f"Cannot open encoded files: need {metadata.parity_shards} parity shards, "
                f"got {len(parity)}"
            )
        windows = split_into_windows(data, metadata.size, metadata.data_shards)
        return cls([*windows, *parity], metadata, **kwargs)

    @classmethod
    def from_container(
        cls,
        data: PositionedResource,
        parity: Sequence[ShardStream],
        metadata: Metadata,
        container: Optional[Container] = None,
    ) -> ShardHealthManager:
        """Like ``open``, with hashing and block settings from the container config."""
        container = container or get_container()
        return cls.open(data, parity, metadata, config=container.config)

    # -- detection -------------------------------------------------------------

    def detect_corruption(self) -> list[CorruptShard]:
        """Rehash every shard and return those that do not match, in index order."""
        return self._detect(range(self.metadata.total_shards))

    def check_health(self) -> None:
        """Verify every shard against its recorded hash.

        Raises:
            IntegrityError: Listing every corrupt shard index.
        """
        corrupt = self.detect_corruption()
        if corrupt:
            raise IntegrityError([shard.index for shard in corrupt])

    def _detect(self, indices: Sequence[int]) -> list[CorruptShard]:
        metrics = get_metrics()
        indices = sorted(indices)
        if not indices:
            return []

        with shard_span("detect_corruption", shards=len(indices)):
            if self.hash_workers > 1 and len(indices) > 1:
                with ThreadPoolExecutor(max_workers=self.hash_workers) as pool:
                    observed = list(pool.map(self._hash_shard, indices))
            else:
                observed = [self._hash_shard(i) for i in indices]

        corrupt = []
        for index, digest in zip(indices, observed):
            kind = self._kind(index)
            metrics.shards_hashed.labels(kind=kind).inc()
            if digest != self.metadata.hashes[index]:
                metrics.corrupt_shards_detected.labels(kind=kind).inc()
                corrupt.append(CorruptShard(index=index, observed_hash=digest))

        if corrupt:
            logger.warning(
                "shard_corruption_detected",
                corrupt_indices=[shard.index for shard in corrupt],
                checked=len(indices),
            )
        return corrupt

    def _hash_shard(self, index: int) -> str:
        shard = self.shards[index]
        shard.seek(0, os.SEEK_SET)
        try:
            return hash_stream(shard, self.hash_algorithm, self._block_size)
        finally:
            shard.seek(0, os.SEEK_SET)

    def _kind(self, index: int) -> str:
        return "parity" if self.metadata.is_parity(index) else "data"

    # -- repair ----------------------------------------------------------------

    def repair(self) -> list[int]:
        """Rebuild corrupt shards in place from the healthy ones.

        Returns:
            Indices of the rebuilt shards (empty if nothing was corrupt).

        Raises:
            InsufficientParityError: If more shards are corrupt than there
                are parity shards. No shard is written in that case.
            EncodingError: If the coder fails during reconstruction.
        """
        return self._repair(self.detect_corruption())

    def _repair(self, corrupt: Sequence[CorruptShard]) -> list[int]:
        metrics = get_metrics()
        if not corrupt:
            return []

        indices = [shard.index for shard in corrupt]
        available = self.metadata.total_shards - len(indices)
        if not self._coder.can_recover(available):
            metrics.repairs.labels(result="insufficient_parity").inc()
            logger.error(
                "shard_repair_failed",
                corrupt_indices=indices,
                parity_shards=self.metadata.parity_shards,
                reason="insufficient_parity",
            )
            raise InsufficientParityError(len(indices), self.metadata.parity_shards)

        readers: list[Optional[ShardStream]] = list(self.shards)
        writers: list[Optional[ShardStream]] = [None] * self.metadata.total_shards
        for index in indices:
            readers[index] = None
            writers[index] = self.shards[index]

        for shard in self.shards:
            shard.seek(0, os.SEEK_SET)

        started = time.perf_counter()
        with shard_span("repair", corrupt=len(indices)):
            try:
                rebuilt = self._coder.reconstruct(readers, writers)
                # A rebuilt shard ends where the coder stopped writing; drop any stale tail.
                for index in rebuilt:
                    shard = self.shards[index]
                    if isinstance(shard, TruncatableShard):
                        shard.truncate(shard.seek(0, os.SEEK_CUR))
            except EncodingError as exc:
                metrics.repairs.labels(result="error").inc()
                logger.error("shard_repair_failed", corrupt_indices=indices, error=str(exc))
                raise
            finally:
                for shard in self.shards:
                    shard.seek(0, os.SEEK_SET)

        metrics.repairs.labels(result="success").inc()
        metrics.shards_reconstructed.inc(len(rebuilt))
        metrics.repair_latency.observe(time.perf_counter() - started)
        logger.info("shard_repair_completed", repaired_indices=rebuilt)
        return rebuilt

    # -- self-healing read -----------------------------------------------------

    def read(self, destination: Destination) -> int:
        """Copy the data shards into ``destination``, repairing first if needed.

        Only shards whose modification timestamp changed since the last
        call are rehashed. Any corruption found triggers ``repair``; if
        that fails the error propagates and nothing is written to
        ``destination``.

        Returns:
            Number of bytes written: the concatenated data shards, padding
            included.

        Raises:
            InsufficientParityError: If the corruption cannot be repaired.
            EncodingError: If reconstruction fails.
        """
        metrics = get_metrics()
        with shard_span("read"):
            stale, observed = self._changed_shards()
            corrupt = self._detect(stale)

            # Corrupt shards keep their old timestamp so the next call rechecks them.
            corrupt_indices = {shard.index for shard in corrupt}
            for index in stale:
                if index not in corrupt_indices:
                    self._mtimes[index] = observed[index]

            if corrupt:
                self._repair(corrupt)

            copied = 0
            data = self.shards[: self.metadata.data_shards]
            try:
                for shard in data:
                    shard.seek(0, os.SEEK_SET)
                    while True:
                        block = shard.read(self._block_size)
                        if not block:
                            break
                        destination.write(block)
                        copied += len(block)
            finally:
                for shard in data:
                    shard.seek(0, os.SEEK_SET)

        metrics.bytes_read.inc(copied)
        return copied

    def _changed_shards(self) -> tuple[list[int], dict[int, int]]:
        """Return the shard indices to rehash plus the timestamps just observed.

        Data shards are rechecked together whenever any of their timestamps
        moved; parity shards are rechecked one by one.
        """
        metrics = get_metrics()
        data_count = self.metadata.data_shards
        observed = {i: shard.modified_at() for i, shard in enumerate(self.shards)}

        stale: list[int] = []
        data_indices = range(data_count)
        if any(observed[i] != self._mtimes[i] for i in data_indices):
            stale.extend(data_indices)
        else:
            metrics.read_cache_hits.labels(kind="data").inc(data_count)
            logger.debug("read_cache_hit", kind="data", shards=data_count)

        for i in range(data_count, self.metadata.total_shards):
            if observed[i] != self._mtimes[i]:
                stale.append(i)
            else:
                metrics.read_cache_hits.labels(kind="parity").inc()
        return stale, observed


class IntegrityError(Exception):
    """Raised when one or more shards fail their hash check."""

    def __init__(self, indices: Sequence[int]) -> None:
        self.indices = list(indices)
        super().__init__(f"Corrupted shards: {self.indices}")


class InsufficientParityError(Exception):
    """Raised when more shards are corrupt than parity can rebuild."""

    def __init__(self, corrupt: int, parity: int) -> None:
        self.corrupt = corrupt
        self.parity = parity
        super().__init__(
            f"Cannot repair data: {corrupt} shards corrupt, only have {parity} parity shards"
        )
