"""Pytest configuration and shared fixtures for Erasure Store tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from erasure_store.adapters.outbound import MemoryResource
from erasure_store.infrastructure import metrics as metrics_module
from erasure_store.infrastructure.config import Config, get_config
from erasure_store.infrastructure.container import Container
from erasure_store.infrastructure.metrics import ErasureStoreMetrics


@pytest.fixture(autouse=True)
def reset_state() -> Generator[None, None, None]:
    """Reset the DI container and cached config before each test."""
    Container.reset()
    get_config.cache_clear()
    yield
    Container.reset()
    get_config.cache_clear()


@pytest.fixture(autouse=True)
def isolated_metrics(monkeypatch: pytest.MonkeyPatch) -> ErasureStoreMetrics:
    """Give each test its own Prometheus registry."""
    metrics = ErasureStoreMetrics(registry=CollectorRegistry(auto_describe=True))
    monkeypatch.setattr(metrics_module, "_metrics", metrics)
    return metrics


@pytest.fixture
def test_config() -> Config:
    """Provide a test configuration."""
    return Config()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for shard files."""
    with tempfile.TemporaryDirectory(prefix="erasure_store_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_data() -> bytes:
    """Deterministic payload that does not divide evenly into 3 shards."""
    return bytes((i * 31 + 7) % 256 for i in range(1000))


@pytest.fixture
def encoded_memory_set(sample_data: bytes):
    """Encode ``sample_data`` as 3 data + 2 parity shards held in memory.

    Returns:
        Tuple of (data resource, parity resources, metadata).
    """
    from erasure_store.domain.services.shard_encoder import encode_resource

    data = MemoryResource(sample_data)
    parity = [MemoryResource(), MemoryResource()]
    metadata = encode_resource(data, len(sample_data), 3, parity)
    for resource in parity:
        resource.seek(0)
    return data, parity, metadata


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (real files on disk)")
