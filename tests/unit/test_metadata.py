"""Unit tests for the metadata record."""

from __future__ import annotations

import dataclasses

import pytest

from erasure_store.domain.entities.metadata import CorruptShard, Metadata


def make_metadata(**overrides) -> Metadata:
    fields = {
        "size": 808,
        "hashes": ("a" * 64, "b" * 64, "c" * 64),
        "data_shards": 2,
        "parity_shards": 1,
    }
    fields.update(overrides)
    return Metadata(**fields)


@pytest.mark.unit
class TestMetadata:
    """Tests for Metadata validation and conversion."""

    def test_creation(self) -> None:
        md = make_metadata()
        assert md.total_shards == 3
        assert md.is_parity(2)
        assert not md.is_parity(1)

    def test_immutable(self) -> None:
        md = make_metadata()
        with pytest.raises(dataclasses.FrozenInstanceError):
            md.size = 1  # type: ignore[misc]

    def test_hashes_stored_as_tuple(self) -> None:
        md = make_metadata(hashes=["a" * 64, "b" * 64, "c" * 64])
        assert isinstance(md.hashes, tuple)

    def test_hash_count_must_match(self) -> None:
        with pytest.raises(ValueError) as exc_info:
            make_metadata(hashes=("a" * 64,))
        assert "Expected 3 hashes" in str(exc_info.value)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"parity_shards": 0, "hashes": ("a", "b")},
            {"data_shards": 0, "hashes": ("a",)},
            {"size": -1},
            {"data_shards": 250, "parity_shards": 10, "hashes": tuple("x" * 260)},
        ],
    )
    def test_invalid_layouts(self, overrides) -> None:
        with pytest.raises(ValueError):
            make_metadata(**overrides)

    def test_dict_round_trip(self) -> None:
        md = make_metadata()
        data = md.to_dict()

        assert data == {
            "size": 808,
            "hashes": ["a" * 64, "b" * 64, "c" * 64],
            "data_shards": 2,
            "parity_shards": 1,
            "hash_algorithm": "sha256",
        }
        assert Metadata.from_dict(data) == md

    def test_hash_algorithm_round_trip(self) -> None:
        md = make_metadata(hash_algorithm="blake2b")
        assert Metadata.from_dict(md.to_dict()).hash_algorithm == "blake2b"

    def test_missing_hash_algorithm_means_sha256(self) -> None:
        md = Metadata.from_dict(
            {"size": 8, "hashes": ["a", "b", "c"], "data_shards": 2, "parity_shards": 1}
        )
        assert md.hash_algorithm == "sha256"

    def test_empty_hash_algorithm_rejected(self) -> None:
        with pytest.raises(ValueError):
            make_metadata(hash_algorithm="")

    def test_from_camel_case(self) -> None:
        md = Metadata.from_dict(
            {
                "size": 8,
                "hashes": ["a", "b", "c"],
                "dataShards": 2,
                "parityShards": 1,
                "hashAlgorithm": "sha3_256",
            }
        )
        assert md.data_shards == 2
        assert md.parity_shards == 1
        assert md.hash_algorithm == "sha3_256"


@pytest.mark.unit
def test_corrupt_shard_is_value() -> None:
    assert CorruptShard(1, "abc") == CorruptShard(index=1, observed_hash="abc")
