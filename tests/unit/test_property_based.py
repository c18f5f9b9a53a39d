"""Property-based tests using hypothesis."""

from __future__ import annotations

import enum
import io
from typing import Any, Optional

import pytest
from hypothesis import given
from hypothesis import strategies as st

from strictbencode import (
    DecodeError,
    Decoder,
    Encoder,
    Int8,
    Record,
    UInt32,
    WireField,
    decode,
    decode_into,
    encode,
)

int64s = st.integers(min_value=-(2**63), max_value=2**63 - 1)

# Plain Python values as produced by Value.to_python()
plain_values = st.recursive(
    st.binary(max_size=32) | int64s,
    lambda children: st.lists(children, max_size=5)
    | st.dictionaries(st.binary(max_size=8), children, max_size=5),
    max_leaves=20,
)


class Mode(enum.IntEnum):
    """Enum with a zero member."""

    SLOW = 0
    FAST = 1
    BULK = 2


class Rank(enum.IntEnum):
    """Enum without a zero member."""

    LOW = 1
    HIGH = 2


class Peer(Record):
    """Record for property testing."""

    host: str = WireField("ip,required", default="")
    port: UInt32 = 0
    tags: list[str] = WireField("tags", default_factory=list)


class Swarm(Record):
    """Record whose defaults are mostly not the zero of their type."""

    seed: Peer = WireField("seed", default_factory=lambda: Peer(host="localhost", port=6881))
    backup: Optional[Peer] = None
    timeout: Optional[int] = None
    retries: int = 5
    mode: Mode = Mode.FAST
    rank: Rank = Rank.LOW
    weights: dict[str, Int8] = WireField("weights", default_factory=dict)


peers = st.builds(
    Peer,
    host=st.text(min_size=1, max_size=10),
    port=st.sampled_from([0, 6881]) | st.integers(min_value=0, max_value=2**32 - 1),
    tags=st.lists(st.text(max_size=5), max_size=3),
)

swarms = st.builds(
    Swarm,
    seed=peers | st.just(Peer(host="localhost", port=6881)),
    backup=st.none() | peers,
    timeout=st.none() | st.just(0) | int64s,
    retries=st.sampled_from([0, 5]) | int64s,
    mode=st.sampled_from(Mode),
    rank=st.sampled_from(Rank),
    weights=st.dictionaries(
        st.text(max_size=4), st.integers(min_value=-128, max_value=127), max_size=3
    ),
)


class TestCodecProperties:
    """Property-based tests for the codec."""

    @given(value=plain_values)
    def test_encode_decode_roundtrip(self, value: Any) -> None:
        """Test decoding an encoding returns the same plain value."""
        assert decode(encode(value)).to_python() == value

    @given(value=plain_values)
    def test_reencode_is_identity(self, value: Any) -> None:
        """Test that canonical bytes survive decode then encode unchanged."""
        data = encode(value)
        assert encode(decode(data)) == data

    @given(mapping=st.dictionaries(st.text(max_size=8), int64s, max_size=10))
    def test_encoding_ignores_insertion_order(self, mapping: dict[str, int]) -> None:
        """Test that key order in the source mapping does not matter."""
        reversed_mapping = dict(reversed(list(mapping.items())))
        assert encode(mapping) == encode(reversed_mapping)

    @given(number=int64s)
    def test_integer_roundtrip(self, number: int) -> None:
        """Test every int64 round-trips through the int destination."""
        assert decode_into(encode(number), int) == number

    @given(peer=peers)
    def test_record_roundtrip(self, peer: Peer) -> None:
        """Test records survive encode then decode_into."""
        assert decode_into(encode(peer), Peer) == peer

    @given(swarm=swarms)
    def test_nested_record_roundtrip(self, swarm: Swarm) -> None:
        """Test Optional, enum, defaulted and nested fields survive a round trip."""
        data = encode(swarm)
        restored = decode_into(data, Swarm)
        assert restored == swarm
        assert encode(restored) == data

    @given(swarm=swarms)
    def test_default_fields_are_omitted(self, swarm: Swarm) -> None:
        """Test a key is written exactly when the field differs from its default."""
        written = decode(encode(swarm))
        defaults = Swarm()
        for name, key in [("backup", b"backup"), ("retries", b"retries"), ("mode", b"mode")]:
            expected = getattr(swarm, name) != getattr(defaults, name)
            assert (written.get(key) is not None) == expected

    @given(values=st.lists(plain_values, max_size=5))
    def test_stream_of_items(self, values: list[Any]) -> None:
        """Test several items written to and read back from one stream."""
        sink = io.BytesIO()
        encoder = Encoder(sink)
        for value in values:
            encoder.encode_next(value)
        sink.seek(0)
        assert [item.to_python() for item in Decoder(sink)] == values

    @given(value=plain_values, data=st.data())
    def test_truncation_always_fails(self, value: Any, data: st.DataObject) -> None:
        """Test that every strict prefix of an encoding is rejected."""
        encoded = encode(value)
        cut = data.draw(st.integers(min_value=0, max_value=len(encoded) - 1))
        with pytest.raises(DecodeError):
            decode(encoded[:cut])

    @given(blob=st.binary(max_size=64))
    def test_arbitrary_input_never_crashes(self, blob: bytes) -> None:
        """Test that arbitrary bytes decode or raise DecodeError only."""
        try:
            value = decode(blob)
        except DecodeError:
            return
        assert encode(value) == blob
