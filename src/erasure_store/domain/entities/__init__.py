"""Domain entities."""

from erasure_store.domain.entities.chunk import (
    BoundsError,
    ChunkWindow,
    InvalidArgumentError,
    chunk_size_for,
    split_into_windows,
)
from erasure_store.domain.entities.metadata import CorruptShard, Metadata

__all__ = [
    "BoundsError",
    "ChunkWindow",
    "CorruptShard",
    "InvalidArgumentError",
    "Metadata",
    "chunk_size_for",
    "split_into_windows",
]
