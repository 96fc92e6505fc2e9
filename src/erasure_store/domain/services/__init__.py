"""Domain services."""

from erasure_store.domain.services.erasure_coding_service import (
    EncodingError,
    ErasureCodingService,
)
from erasure_store.domain.services.shard_encoder import ShardEncoder, encode_resource
from erasure_store.domain.services.shard_health_manager import (
    InsufficientParityError,
    IntegrityError,
    ShardHealthManager,
)

__all__ = [
    "EncodingError",
    "ErasureCodingService",
    "InsufficientParityError",
    "IntegrityError",
    "ShardEncoder",
    "ShardHealthManager",
    "encode_resource",
]
