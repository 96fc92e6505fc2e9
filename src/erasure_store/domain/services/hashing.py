"""Content hashing for shards."""

from __future__ import annotations

import hashlib
from typing import Any, Protocol

SUPPORTED_ALGORITHMS = ("sha256", "sha3_256", "blake2b")


class _Reader(Protocol):
    def read(self, size: int = -1) -> bytes: ...


def new_hasher(algorithm: str = "sha256") -> Any:
    """Create an incremental hasher.

    Args:
        algorithm: Hash algorithm (sha256, sha3_256 or blake2b)

    Raises:
        ValueError: For an unsupported algorithm.
    """
    if algorithm == "sha256":
        return hashlib.sha256()
    elif algorithm == "sha3_256":
        return hashlib.sha3_256()
    elif algorithm == "blake2b":
        return hashlib.blake2b(digest_size=32)
    else:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")


def compute_hash(data: bytes, algorithm: str = "sha256") -> str:
    """Hex digest of ``data``."""
    hasher = new_hasher(algorithm)
    hasher.update(data)
    return hasher.hexdigest()


def hash_stream(reader: _Reader, algorithm: str = "sha256", block_size: int = 64 * 1024) -> str:
    """Hash everything ``reader`` yields until it returns ``b""``."""
    hasher = new_hasher(algorithm)
    while True:
        block = reader.read(block_size)
        if not block:
            break
        hasher.update(block)
    return hasher.hexdigest()
