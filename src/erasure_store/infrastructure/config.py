"""Configuration management for Erasure Store using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ErasureCodingConfig(BaseSettings):
    """Erasure coding configuration."""

    model_config = SettingsConfigDict(env_prefix="ERASURE_STORE_EC_")

    data_shards: int = Field(default=4, ge=1, le=255)
    parity_shards: int = Field(default=2, ge=1, le=255)
    block_size: int = Field(default=64 * 1024, ge=1, description="Bytes per shard per coding round")

    @model_validator(mode="after")
    def _check_total(self) -> "ErasureCodingConfig":
        if self.data_shards + self.parity_shards > 256:
            raise ValueError("data_shards + parity_shards must not exceed 256")
        return self


class IntegrityConfig(BaseSettings):
    """Shard hashing configuration."""

    model_config = SettingsConfigDict(env_prefix="ERASURE_STORE_INTEGRITY_")

    hash_algorithm: Literal["sha256", "sha3_256", "blake2b"] = "sha256"
    hash_workers: int = Field(default=1, ge=1, le=64)


class ObservabilityConfig(BaseSettings):
    """Observability configuration."""

    model_config = SettingsConfigDict(env_prefix="ERASURE_STORE_OBSERVABILITY_")

    log_level: str = "info"
    log_format: str = "json"
    otlp_endpoint: str = ""
    environment: str = "development"


class Config(BaseSettings):
    """Root configuration for Erasure Store."""

    model_config = SettingsConfigDict(
        env_prefix="ERASURE_STORE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    erasure_coding: ErasureCodingConfig = Field(default_factory=ErasureCodingConfig)
    integrity: IntegrityConfig = Field(default_factory=IntegrityConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config()
