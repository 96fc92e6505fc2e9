"""Shard encoder: parity generation with per-shard content hashes."""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any, Optional

from erasure_store.domain.entities.chunk import split_into_windows
from erasure_store.domain.entities.metadata import Metadata
from erasure_store.domain.services.erasure_coding_service import (
    EncodingError,
    ErasureCodingService,
    Reader,
    Writer,
)
from erasure_store.domain.services.hashing import new_hasher
from erasure_store.infrastructure.config import Config, get_config
from erasure_store.infrastructure.container import Container, get_container
from erasure_store.infrastructure.logging import get_logger
from erasure_store.infrastructure.metrics import get_metrics
from erasure_store.infrastructure.tracing import shard_span
from erasure_store.ports.outbound.shard_resource import PositionedResource

logger = get_logger(__name__)


class _HashingReader:
    """Reader that feeds everything it returns into a hasher."""

    def __init__(self, source: Reader, hasher: Any) -> None:
        self._source = source
        self.hasher = hasher
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        data = self._source.read(size)
        self.hasher.update(data)
        self.bytes_read += len(data)
        return data


class _HashingWriter:
    """Writer that forwards to a destination and hashes what it wrote."""

    def __init__(self, destination: Writer, hasher: Any) -> None:
        self._destination = destination
        self.hasher = hasher

    def write(self, data: bytes) -> int:
        data = bytes(data)
        view = memoryview(data)
        while view:
            written = self._destination.write(view)
            if written is None:
                written = len(view)
            view = view[written:]
        self.hasher.update(data)
        return len(data)


class ShardEncoder:
    """Encodes N data sources into M parity destinations.

    While the coder streams the data shards, every data source and every
    parity output is hashed, so the returned ``Metadata`` describes the
    shard set exactly as it was written.

    Example:
        windows = split_into_windows(resource, size, 4)
        encoder = ShardEncoder(windows, size, data_shards=4, parity_shards=2)
        metadata = encoder.encode([parity0, parity1])
    """

    def __init__(
        self,
        data_sources: Sequence[Reader],
        size: int,
        data_shards: int,
        parity_shards: int,
        coder: Optional[ErasureCodingService] = None,
        hash_algorithm: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> None:
        """Initialize the encoder.

        Args:
            data_sources: One reader per data shard, all the same length.
            size: Logical length of the original data (recorded as-is).
            data_shards: Number of data shards.
            parity_shards: Number of parity shards.
            coder: Erasure coder; built from config if omitted.
            hash_algorithm: Content hash; defaults to the configured one.
            config: Settings for defaults; the cached global config if omitted.
        """
        config = config or get_config()
        self.data_sources = list(data_sources)
        self.size = size
        self.data_shards = data_shards
        self.parity_shards = parity_shards
        self.hash_algorithm = hash_algorithm or config.integrity.hash_algorithm
        self._coder = coder or ErasureCodingService(
            data_shards,
            parity_shards,
            block_size=config.erasure_coding.block_size,
        )
        if (self._coder.data_shards, self._coder.parity_shards) != (data_shards, parity_shards):
            raise ValueError(
                f"Coder layout {self._coder.data_shards}+{self._coder.parity_shards} does not "
                f"match requested {data_shards}+{parity_shards}"
            )

    @classmethod
    def from_container(
        cls,
        data_sources: Sequence[Reader],
        size: int,
        container: Optional[Container] = None,
    ) -> ShardEncoder:
        """Build an encoder with the shard layout and hashing from the container config."""
        container = container or get_container()
        config = container.config
        return cls(
            data_sources,
            size,
            config.erasure_coding.data_shards,
            config.erasure_coding.parity_shards,
            config=config,
        )

    def encode(self, parity_destinations: Sequence[Writer]) -> Metadata:
        """Write parity shards and return the shard set's metadata.

        Args:
            parity_destinations: One writer per parity shard.

        Returns:
            Metadata with data-shard hashes first, then parity-shard hashes.

        Raises:
            EncodingError: If the coder rejects the shards (most commonly
                because the data sources differ in length).
        """
        metrics = get_metrics()
        if len(self.data_sources) != self.data_shards:
            raise EncodingError(
                f"Expected {self.data_shards} data sources, got {len(self.data_sources)}"
            )
        if len(parity_destinations) != self.parity_shards:
            raise EncodingError(
                f"Expected {self.parity_shards} parity destinations, got {len(parity_destinations)}"
            )

        readers = [
            _HashingReader(source, new_hasher(self.hash_algorithm))
            for source in self.data_sources
        ]
        writers = [
            _HashingWriter(destination, new_hasher(self.hash_algorithm))
            for destination in parity_destinations
        ]

        started = time.perf_counter()
        with shard_span(
            "encode",
            data_shards=self.data_shards,
            parity_shards=self.parity_shards,
            size=self.size,
        ):
            try:
                shard_length = self._coder.encode(readers, writers)
            except EncodingError as exc:
                metrics.encode_operations.labels(result="error").inc()
                logger.warning(
                    "shard_encode_failed",
                    data_shards=self.data_shards,
                    parity_shards=self.parity_shards,
                    error=str(exc),
                )
                raise

        hashes = [r.hasher.hexdigest() for r in readers] + [w.hasher.hexdigest() for w in writers]

        metrics.encode_operations.labels(result="success").inc()
        metrics.bytes_encoded.inc(sum(r.bytes_read for r in readers))
        metrics.encode_latency.observe(time.perf_counter() - started)
        logger.info(
            "shard_encode_completed",
            size=self.size,
            shard_length=shard_length,
            data_shards=self.data_shards,
            parity_shards=self.parity_shards,
        )

        return Metadata(
            size=self.size,
            hashes=tuple(hashes),
            data_shards=self.data_shards,
            parity_shards=self.parity_shards,
            hash_algorithm=self.hash_algorithm,
        )


def encode_resource(
    resource: PositionedResource,
    size: int,
    data_shards: int,
    parity_destinations: Sequence[Writer],
    coder: Optional[ErasureCodingService] = None,
    hash_algorithm: Optional[str] = None,
) -> Metadata:
    """Split one data resource into padded windows and encode them.

    Args:
        resource: Resource holding ``size`` bytes of logical data.
        size: Logical data length.
        data_shards: Number of windows to split the data into.
        parity_destinations: One writer per parity shard.

    Returns:
        Metadata for the encoded shard set.
    """
    windows = split_into_windows(resource, size, data_shards)
    encoder = ShardEncoder(
        windows,
        size,
        data_shards,
        len(parity_destinations),
        coder=coder,
        hash_algorithm=hash_algorithm,
    )
    return encoder.encode(parity_destinations)
