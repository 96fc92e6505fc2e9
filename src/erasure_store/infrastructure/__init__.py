"""Infrastructure layer - cross-cutting concerns."""

from erasure_store.infrastructure.config import Config, get_config
from erasure_store.infrastructure.logging import setup_logging, get_logger
from erasure_store.infrastructure.metrics import ErasureStoreMetrics, get_metrics
from erasure_store.infrastructure.tracing import setup_tracing, get_tracer, shard_span

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "get_logger",
    "ErasureStoreMetrics",
    "get_metrics",
    "setup_tracing",
    "get_tracer",
    "shard_span",
]
