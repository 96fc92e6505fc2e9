"""Prometheus metrics for Erasure Store."""

from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY


class ErasureStoreMetrics:
    """Metrics collector for shard encoding, health checks and repair."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        # Encoding
        self.encode_operations = Counter(
            "erasure_store_encode_operations_total",
            "Total shard encode operations",
            ["result"],
            registry=registry,
        )
        self.bytes_encoded = Counter(
            "erasure_store_bytes_encoded_total",
            "Total data shard bytes streamed through the encoder",
            registry=registry,
        )
        self.encode_latency = Histogram(
            "erasure_store_encode_latency_seconds",
            "Shard encode latency",
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=registry,
        )

        # Integrity
        self.shards_hashed = Counter(
            "erasure_store_shards_hashed_total",
            "Total shards rehashed during health checks",
            ["kind"],
            registry=registry,
        )
        self.corrupt_shards_detected = Counter(
            "erasure_store_corrupt_shards_detected_total",
            "Total corrupt shards detected",
            ["kind"],
            registry=registry,
        )
        self.read_cache_hits = Counter(
            "erasure_store_read_cache_hits_total",
            "Shards whose rehash was skipped on read because their timestamp was unchanged",
            ["kind"],
            registry=registry,
        )

        # Repair
        self.repairs = Counter(
            "erasure_store_repairs_total",
            "Total repair attempts",
            ["result"],
            registry=registry,
        )
        self.shards_reconstructed = Counter(
            "erasure_store_shards_reconstructed_total",
            "Total shards rebuilt from parity",
            registry=registry,
        )
        self.repair_latency = Histogram(
            "erasure_store_repair_latency_seconds",
            "Shard reconstruction latency",
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=registry,
        )

        # Reads
        self.bytes_read = Counter(
            "erasure_store_bytes_read_total",
            "Total bytes served by self-healing reads",
            registry=registry,
        )


_metrics: ErasureStoreMetrics | None = None


def get_metrics() -> ErasureStoreMetrics:
    """Get the singleton metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = ErasureStoreMetrics()
    return _metrics
