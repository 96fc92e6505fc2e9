"""Outbound adapters - storage implementations for shard resources."""

from erasure_store.adapters.outbound.file_resource import FileResource
from erasure_store.adapters.outbound.memory_resource import MemoryResource

__all__ = [
    "FileResource",
    "MemoryResource",
]
