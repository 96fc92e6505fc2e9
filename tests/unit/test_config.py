"""Unit tests for Erasure Store configuration."""

import pytest
from pydantic import ValidationError

from erasure_store.infrastructure.config import (
    Config,
    ErasureCodingConfig,
    IntegrityConfig,
    get_config,
)


@pytest.mark.unit
class TestConfig:
    """Test configuration loading and validation."""

    def test_default_config(self):
        """Test default configuration values."""
        config = Config()
        assert config.erasure_coding.data_shards == 4
        assert config.integrity.hash_algorithm == "sha256"
        assert config.observability.log_format == "json"

    def test_erasure_coding_defaults(self):
        """Test erasure coding configuration defaults."""
        ec_config = ErasureCodingConfig()
        assert ec_config.data_shards == 4
        assert ec_config.parity_shards == 2
        assert ec_config.block_size == 64 * 1024

    def test_env_override(self, monkeypatch):
        """Test environment variables override defaults."""
        monkeypatch.setenv("ERASURE_STORE_EC_PARITY_SHARDS", "3")
        monkeypatch.setenv("ERASURE_STORE_INTEGRITY_HASH_ALGORITHM", "blake2b")

        config = get_config()

        assert config.erasure_coding.parity_shards == 3
        assert config.integrity.hash_algorithm == "blake2b"

    def test_total_shard_limit(self):
        """Test that layouts beyond 256 shards are rejected."""
        with pytest.raises(ValidationError):
            ErasureCodingConfig(data_shards=200, parity_shards=100)

    def test_unknown_hash_algorithm(self):
        """Test that only supported hash algorithms are accepted."""
        with pytest.raises(ValidationError):
            IntegrityConfig(hash_algorithm="md5")

    def test_config_is_cached(self):
        assert get_config() is get_config()
