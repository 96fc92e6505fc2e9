"""Dependency injection container for Erasure Store."""

from dataclasses import dataclass
from typing import Any

import structlog
from opentelemetry import trace

from erasure_store.infrastructure.config import Config, get_config
from erasure_store.infrastructure.logging import setup_logging
from erasure_store.infrastructure.metrics import get_metrics
from erasure_store.infrastructure.tracing import setup_tracing


@dataclass
class Container:
    """Dependency injection container for erasure store components."""

    config: Config
    logger: structlog.stdlib.BoundLogger
    tracer: trace.Tracer
    metrics: Any  # ErasureStoreMetrics

    _instance: "Container | None" = None

    @classmethod
    def create(cls) -> "Container":
        """Create and initialize the container with all dependencies."""
        if cls._instance is not None:
            return cls._instance

        config = get_config()
        logger = setup_logging(
            level=config.observability.log_level,
            log_format=config.observability.log_format,
        )
        tracer = setup_tracing()
        metrics = get_metrics()

        cls._instance = cls(
            config=config,
            logger=logger,
            tracer=tracer,
            metrics=metrics,
        )

        logger.info(
            "erasure_store_container_initialized",
            environment=config.observability.environment,
            data_shards=config.erasure_coding.data_shards,
            parity_shards=config.erasure_coding.parity_shards,
            hash_algorithm=config.integrity.hash_algorithm,
        )

        return cls._instance

    @classmethod
    def get(cls) -> "Container":
        """Get the singleton container instance."""
        if cls._instance is None:
            return cls.create()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the container (useful for testing)."""
        cls._instance = None


def get_container() -> Container:
    """Get the dependency injection container."""
    return Container.get()
