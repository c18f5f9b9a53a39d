"""End-to-end integration tests."""

from __future__ import annotations

import io
from typing import Optional

import pytest
from pydantic import Field

from strictbencode import (
    BindError,
    Decoder,
    EncodeError,
    Encoder,
    ErrorKind,
    Record,
    StructureError,
    WireField,
    decode,
    decode_into,
    encode,
)


class Info(Record):
    """Torrent info dictionary."""

    pieces: str = WireField("pieces,omitempty", default="")
    piece_length: int = WireField("piece length", default=0)
    length: int = WireField("length", default=0)
    name: str = WireField("name", default="")


class Metainfo(Record):
    """Torrent metainfo file."""

    announce: str = WireField("announce", default="")
    announce_list: list[list[str]] = WireField("announce-list", default_factory=list)
    comment: str = WireField("comment", default="")
    info: Info = WireField("info", default_factory=Info)


class Contact(Record):
    """Record with several required keys."""

    name: str = WireField("name,required", default="")
    age: int = WireField("age,required", default=0)
    city: str = WireField("city", default="")
    country: str = WireField("country,required", default="")
    optional: str = WireField("optional_field", default="")


@pytest.fixture
def metainfo() -> Metainfo:
    return Metainfo(
        announce="udp://tracker.publicbt.com:80/announce",
        announce_list=[
            ["udp://tracker.publicbt.com:80/announce"],
            ["udp://tracker.openbittorrent.com:80/announce"],
        ],
        comment="Debian CD from cdimage.debian.org",
        info=Info(
            name="debian-8.8.0-arm64-netinst.iso",
            length=170917888,
            piece_length=262144,
        ),
    )


class TestTorrentWorkflow:
    """Test a complete torrent metainfo workflow."""

    def test_encode_metainfo(self, metainfo: Metainfo, torrent_bytes: bytes) -> None:
        """Test the record encodes to the canonical bytes."""
        assert encode(metainfo) == torrent_bytes

    def test_decode_metainfo(self, metainfo: Metainfo, torrent_bytes: bytes) -> None:
        """Test the canonical bytes bind back into the record."""
        assert decode_into(torrent_bytes, Metainfo) == metainfo

    def test_roundtrip(self, metainfo: Metainfo) -> None:
        """Test encode then decode_into then encode is stable."""
        data = encode(metainfo)
        decoded = decode_into(data, Metainfo)
        assert decoded == metainfo
        assert encode(decoded) == data

    def test_generic_decode(self, torrent_bytes: bytes) -> None:
        """Test the same bytes through the generic value model."""
        value = decode(torrent_bytes).to_python()
        assert value[b"announce"] == b"udp://tracker.publicbt.com:80/announce"
        assert value[b"info"][b"piece length"] == 262144
        assert len(value[b"announce-list"]) == 2
        assert encode(value) == torrent_bytes

    def test_omitempty_pieces(self, metainfo: Metainfo) -> None:
        """Test that pieces appears once set."""
        metainfo.info.pieces = "abc"
        data = encode(metainfo)
        assert b"6:pieces3:abc" in data
        assert decode_into(data, Metainfo).info.pieces == "abc"

    def test_tampered_key_order(self, torrent_bytes: bytes) -> None:
        """Test that swapping keys in the info dictionary is rejected."""
        tampered = torrent_bytes.replace(
            b"6:lengthi170917888e4:name30:debian-8.8.0-arm64-netinst.iso",
            b"4:name30:debian-8.8.0-arm64-netinst.iso6:lengthi170917888e",
        )
        with pytest.raises(StructureError) as exc_info:
            decode_into(tampered, Metainfo)
        err = exc_info.value
        assert err.kind is ErrorKind.DICT_KEY_ORDER
        assert err.field == "info"
        assert err.has_kind(ErrorKind.DICT_KEY_ORDER)


class TestRequiredFields:
    """Test required keys through a full decode."""

    def test_all_present(self) -> None:
        """Test all required keys present."""
        data = b"d3:agei30e4:city7:NewYork7:country3:USA4:name4:Johne"
        assert decode_into(data, Contact) == Contact(
            name="John", age=30, city="NewYork", country="USA"
        )

    @pytest.mark.parametrize(
        ("data", "missing"),
        [
            (b"d3:agei30e4:city7:NewYork7:country3:USAe", "name"),
            (b"d4:city7:NewYork7:country3:USA4:name4:Johne", "age"),
            (b"d3:agei30e4:city7:NewYork4:name4:Johne", "country"),
        ],
    )
    def test_missing(self, data: bytes, missing: str) -> None:
        """Test each absent required key is reported by name."""
        with pytest.raises(BindError) as exc_info:
            decode_into(data, Contact)
        assert exc_info.value.kind is ErrorKind.REQUIRED_FIELD_MISSING
        assert exc_info.value.field == missing

    def test_optional_absent(self) -> None:
        """Test non-required keys default to empty."""
        contact = decode_into(b"d3:agei1e7:country2:NZ4:name1:xe", Contact)
        assert contact.city == ""
        assert contact.optional == ""


class TestStreaming:
    """Test several records over one stream."""

    def test_record_stream(self, metainfo: Metainfo) -> None:
        """Test writing and reading a sequence of records."""
        contact = Contact(name="a", age=1, country="b")
        sink = io.BytesIO()
        encoder = Encoder(sink)
        encoder.encode_next(metainfo)
        encoder.encode_next(contact)
        encoder.encode_next([1, 2, 3])

        sink.seek(0)
        decoder = Decoder(sink)
        first = decoder.decode_next()
        second = decoder.decode_next()
        third = decoder.decode_next()

        assert encode(first) == encode(metainfo)
        assert second.to_python() == {b"age": 1, b"country": b"b", b"name": b"a"}
        assert third.to_python() == [1, 2, 3]
        assert sink.read() == b""

    def test_stream_binding(self) -> None:
        """Test decode_into consuming one item at a time from a stream."""
        stream = io.BytesIO(b"li1ei2eed1:ai1ee")
        assert decode_into(stream, list[int]) == [1, 2]
        assert decode_into(stream, dict[str, int]) == {"a": 1}


class Settings(Record):
    """Record mixing pydantic constraints and wire tags."""

    retries: int = Field(default=3, ge=0, le=10)
    endpoint: str = WireField("url,required", default="")


def test_pydantic_constraints_apply_on_decode() -> None:
    """Test that pydantic validation still runs for decoded records."""
    assert decode_into(b"d7:retriesi5e3:url1:xe", Settings).retries == 5
    with pytest.raises(BindError):
        decode_into(b"d7:retriesi50e3:url1:xe", Settings)


class Policy(Record):
    """Record whose absent values differ from the zero of their type."""

    timeout: Optional[int] = None
    retries: int = 5
    label: str = WireField("label,required", default="")


class TestAbsentFieldRoundTrip:
    """Test that omitted fields decode back to the values they held."""

    def test_zero_held_by_optional(self) -> None:
        """Test an Optional field holding 0 is written and restored."""
        policy = Policy(timeout=0, label="p")
        data = encode(policy)
        assert data == b"d5:label1:p7:timeouti0ee"
        assert decode_into(data, Policy) == policy

    def test_zero_against_non_zero_default(self) -> None:
        """Test a field holding 0 whose default is not 0."""
        policy = Policy(retries=0, label="p")
        data = encode(policy)
        assert data == b"d5:label1:p7:retriesi0ee"
        assert decode_into(data, Policy).retries == 0

    def test_default_value_is_omitted(self) -> None:
        """Test fields equal to their declared default are left out."""
        assert encode(Policy(label="p")) == b"d5:label1:pe"
        assert encode(Policy(retries=5, timeout=None, label="p")) == b"d5:label1:pe"
        assert decode_into(b"d5:label1:pe", Policy) == Policy(label="p")

    def test_required_zero_still_fails(self) -> None:
        """Test a required field holding its zero value."""
        with pytest.raises(EncodeError) as exc_info:
            encode(Policy(retries=0, timeout=0))
        assert exc_info.value.kind is ErrorKind.ENCODE_REQUIRED_ZERO
        assert exc_info.value.field == "label"

    def test_nested_record_default(self) -> None:
        """Test a nested record equal to its default factory is omitted."""
        assert encode(Metainfo(announce="a")) == b"d8:announce1:ae"
        metainfo = Metainfo(info=Info(length=0, name="n"))
        assert decode_into(encode(metainfo), Metainfo) == metainfo
