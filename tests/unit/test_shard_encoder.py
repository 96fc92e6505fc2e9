"""Unit tests for the shard encoder."""

from __future__ import annotations

import hashlib
import io

import pytest

from erasure_store.adapters.outbound import MemoryResource
from erasure_store.domain.entities.chunk import split_into_windows
from erasure_store.domain.services.erasure_coding_service import (
    EncodingError,
    ErasureCodingService,
)
from erasure_store.domain.services.shard_encoder import ShardEncoder, encode_resource
from erasure_store.domain.services.shard_health_manager import ShardHealthManager


def fixture_payload(size: int = 808) -> bytes:
    return bytes((i * 7 + 3) % 256 for i in range(size))


# sha256 of the two 404-byte data windows and the zfec 2+1 parity of
# fixture_payload(808).
FIXTURE_808_HASHES = (
    "e872c79cda8ec07627e85081c3ebf22156561433f5d8843593c9bf967370c4fa",
    "83c315d0ffa60ac3336b6093384da98bb6e3e4cf7203ac7064840394326e8667",
    "bd22341e8760b4a4c8ed18fbe0c9821b7f23bb17f42a9f420aa117a771275580",
)
FIXTURE_808_READ_SHA256 = "03ac7cc79181bc2136a484f08e4bcdbc9447a0dc93b61aec4c7703c0d7a01836"


@pytest.mark.unit
class TestShardEncoder:
    """Tests for ShardEncoder.encode."""

    def test_fixture_808_bytes_two_plus_one(self) -> None:
        """size=808 over 2 data shards and 1 parity shard."""
        parity = MemoryResource()

        md = encode_resource(MemoryResource(fixture_payload()), 808, 2, [parity])

        assert md.size == 808
        assert md.data_shards == 2
        assert md.parity_shards == 1
        assert md.hashes == FIXTURE_808_HASHES
        assert len(parity) == 404

    def test_fixture_808_read_back(self) -> None:
        data = MemoryResource(fixture_payload())
        parity = MemoryResource()
        md = encode_resource(data, 808, 2, [parity])
        parity.seek(0)
        out = io.BytesIO()

        n = ShardHealthManager.open(data, [parity], md).read(out)

        assert n == 808
        assert hashlib.sha256(out.getvalue()).hexdigest() == FIXTURE_808_READ_SHA256

    def test_fixture_808_data_shard_rebuilt_exactly(self) -> None:
        data = MemoryResource(fixture_payload())
        parity = MemoryResource()
        md = encode_resource(data, 808, 2, [parity])
        parity.seek(0)
        data.write_at(b"\xff" * 10, 0)

        assert ShardHealthManager.open(data, [parity], md).repair() == [0]
        assert hashlib.sha256(data.getvalue()[:404]).hexdigest() == FIXTURE_808_HASHES[0]

    def test_padded_windows_are_hashed_with_padding(self) -> None:
        payload = b"ABCDEFGH"
        md = encode_resource(MemoryResource(payload), 8, 3, [io.BytesIO()])

        assert md.hashes[:3] == (
            hashlib.sha256(b"ABC").hexdigest(),
            hashlib.sha256(b"DEF").hexdigest(),
            hashlib.sha256(b"GH\x00").hexdigest(),
        )

    def test_separate_data_sources(self) -> None:
        sources = [io.BytesIO(b"AAAA"), io.BytesIO(b"BBBB"), io.BytesIO(b"CCCC")]
        parity = [io.BytesIO(), io.BytesIO()]

        md = ShardEncoder(sources, 12, 3, 2).encode(parity)

        assert len(md.hashes) == 5
        assert md.hashes[0] == hashlib.sha256(b"AAAA").hexdigest()
        assert md.hashes[3] == hashlib.sha256(parity[0].getvalue()).hexdigest()
        assert md.hashes[4] == hashlib.sha256(parity[1].getvalue()).hexdigest()
        assert all(len(p.getvalue()) == 4 for p in parity)

    def test_logical_size_recorded_verbatim(self) -> None:
        md = encode_resource(MemoryResource(b"ABCDEFGHI"), 9, 2, [io.BytesIO()])
        assert md.size == 9

    def test_unequal_sources_fail(self) -> None:
        sources = [io.BytesIO(b"AAAA"), io.BytesIO(b"BBB")]

        with pytest.raises(EncodingError):
            ShardEncoder(sources, 7, 2, 1).encode([io.BytesIO()])

    def test_source_count_mismatch(self) -> None:
        with pytest.raises(EncodingError):
            ShardEncoder([io.BytesIO(b"AAAA")], 4, 2, 1).encode([io.BytesIO()])

    def test_destination_count_mismatch(self) -> None:
        sources = [io.BytesIO(b"AA"), io.BytesIO(b"BB")]
        with pytest.raises(EncodingError):
            ShardEncoder(sources, 4, 2, 1).encode([io.BytesIO(), io.BytesIO()])

    def test_coder_layout_must_match(self) -> None:
        with pytest.raises(ValueError):
            ShardEncoder([], 0, 2, 1, coder=ErasureCodingService(3, 1))

    @pytest.mark.parametrize(
        "algorithm,expected",
        [
            ("sha3_256", hashlib.sha3_256(b"ABCD").hexdigest()),
            ("blake2b", hashlib.blake2b(b"ABCD", digest_size=32).hexdigest()),
        ],
    )
    def test_alternative_hash_algorithms(self, algorithm: str, expected: str) -> None:
        md = encode_resource(
            MemoryResource(b"ABCDEFGH"), 8, 2, [io.BytesIO()], hash_algorithm=algorithm
        )
        assert md.hashes[0] == expected
        assert md.hash_algorithm == algorithm

    def test_windows_consumed(self) -> None:
        resource = MemoryResource(b"ABCDEFGH")
        windows = split_into_windows(resource, 8, 2)

        ShardEncoder(windows, 8, 2, 1).encode([io.BytesIO()])

        assert all(w.remaining == 0 for w in windows)

    def test_metrics_recorded(self, isolated_metrics) -> None:
        encode_resource(MemoryResource(b"ABCDEFGH"), 8, 2, [io.BytesIO()])

        assert isolated_metrics.encode_operations.labels(result="success")._value.get() == 1
        assert isolated_metrics.bytes_encoded._value.get() == 8
