"""
Erasure Store - integrity-checked, erasure-coded shard storage

Splits a data source into zero-padded shard windows, produces Reed-Solomon
parity with per-shard content hashes, and detects and repairs corrupt
shards, including a self-healing read mode.

Example usage:
    from erasure_store import FileResource, ShardHealthManager, encode_resource

    with FileResource("data.bin") as data, FileResource.create("data.p0") as parity:
        metadata = encode_resource(data, data.size(), 4, [parity])
        manager = ShardHealthManager.open(data, [parity], metadata)
        manager.check_health()
"""

__version__ = "0.1.0"

from erasure_store.adapters.outbound import FileResource, MemoryResource
from erasure_store.domain.entities import (
    BoundsError,
    ChunkWindow,
    CorruptShard,
    InvalidArgumentError,
    Metadata,
    split_into_windows,
)
from erasure_store.domain.services import (
    EncodingError,
    ErasureCodingService,
    InsufficientParityError,
    IntegrityError,
    ShardEncoder,
    ShardHealthManager,
    encode_resource,
)

__all__ = [
    "__version__",
    # Windows
    "ChunkWindow",
    "split_into_windows",
    # Metadata
    "Metadata",
    "CorruptShard",
    # Services
    "ErasureCodingService",
    "ShardEncoder",
    "ShardHealthManager",
    "encode_resource",
    # Resources
    "FileResource",
    "MemoryResource",
    # Errors
    "BoundsError",
    "InvalidArgumentError",
    "EncodingError",
    "IntegrityError",
    "InsufficientParityError",
]
