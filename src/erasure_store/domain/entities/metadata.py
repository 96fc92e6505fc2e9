"""Metadata record for an encoded shard set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# zfec addresses shards with a single byte.
MAX_TOTAL_SHARDS = 256

# Records written without an algorithm field were hashed with sha256.
DEFAULT_HASH_ALGORITHM = "sha256"


@dataclass(frozen=True)
class Metadata:
    """Everything needed to check, repair and read back a shard set.

    ``hashes`` holds one lowercase hex digest per shard: data shards
    ``[0, data_shards)`` first, then parity shards
    ``[data_shards, data_shards + parity_shards)``.

    ``hash_algorithm`` names the digest the hashes were computed with;
    health checks rehash with the same one.

    Persisting the record is left to the caller; ``to_dict`` and
    ``from_dict`` produce and accept the portable shape.
    """

    size: int
    hashes: tuple[str, ...]
    data_shards: int
    parity_shards: int
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM

    def __post_init__(self) -> None:
        object.__setattr__(self, "hashes", tuple(self.hashes))
        if self.size < 0:
            raise ValueError(f"size must not be negative, got {self.size}")
        if self.data_shards < 1:
            raise ValueError(f"data_shards must be at least 1, got {self.data_shards}")
        if self.parity_shards < 1:
            raise ValueError(f"parity_shards must be at least 1, got {self.parity_shards}")
        if self.total_shards > MAX_TOTAL_SHARDS:
            raise ValueError(
                f"data_shards + parity_shards must not exceed {MAX_TOTAL_SHARDS}, "
                f"got {self.total_shards}"
            )
        if len(self.hashes) != self.total_shards:
            raise ValueError(
                f"Expected {self.total_shards} hashes, got {len(self.hashes)}"
            )
        if not self.hash_algorithm:
            raise ValueError("hash_algorithm must not be empty")

    @property
    def total_shards(self) -> int:
        return self.data_shards + self.parity_shards

    def is_parity(self, index: int) -> bool:
        """True if shard ``index`` is a parity shard."""
        return index >= self.data_shards

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "size": self.size,
            "hashes": list(self.hashes),
            "data_shards": self.data_shards,
            "parity_shards": self.parity_shards,
            "hash_algorithm": self.hash_algorithm,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Metadata:
        """Create from dictionary.

        Accepts both snake_case keys and the camelCase ``dataShards``,
        ``parityShards`` and ``hashAlgorithm`` keys. A missing algorithm
        means sha256.
        """
        return cls(
            size=int(data["size"]),
            hashes=tuple(data["hashes"]),
            data_shards=int(data.get("data_shards", data.get("dataShards", 0))),
            parity_shards=int(data.get("parity_shards", data.get("parityShards", 0))),
            hash_algorithm=data.get(
                "hash_algorithm", data.get("hashAlgorithm", DEFAULT_HASH_ALGORITHM)
            ),
        )


@dataclass(frozen=True)
class CorruptShard:
    """A shard whose content hash did not match the recorded one."""

    index: int
    observed_hash: str
