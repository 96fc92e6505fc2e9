"""Outbound ports - interfaces for external dependencies.

Outbound ports define contracts for the storage that shards live in.
"""

from erasure_store.ports.outbound.shard_resource import (
    PositionedResource,
    ShardStream,
    TruncatableShard,
)

__all__ = [
    "PositionedResource",
    "ShardStream",
    "TruncatableShard",
]
