#!/usr/bin/env python3
"""Basic usage example for strictbencode.

This example demonstrates:
1. Defining a torrent metainfo record with Pydantic
2. Encoding to canonical bencode
3. Decoding back into the record and into the generic value model
4. Rejecting non-canonical input
"""

from __future__ import annotations

from strictbencode import (
    DecodeError,
    Record,
    UInt32,
    WireField,
    decode,
    decode_into,
    encode,
)


class Info(Record):
    """The info dictionary of a single-file torrent."""

    pieces: bytes = WireField("pieces,omitempty", default=b"")
    piece_length: UInt32 = WireField("piece length,required", default=0)
    length: int = WireField("length,required", default=0)
    name: str = WireField("name,required", default="")


class Metainfo(Record):
    """Torrent metainfo file."""

    announce: str = WireField("announce,required", default="")
    announce_list: list[list[str]] = WireField("announce-list", default_factory=list)
    comment: str = ""
    info: Info = WireField("info,required", default_factory=Info)


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("strictbencode Basic Usage Example")
    print("=" * 60)
    print()

    print("1. Creating a metainfo record...")
    meta = Metainfo(
        announce="udp://tracker.publicbt.com:80/announce",
        comment="Debian CD from cdimage.debian.org",
        info=Info(
            name="debian-8.8.0-arm64-netinst.iso",
            length=170917888,
            piece_length=262144,
        ),
    )
    print(f"   Name: {meta.info.name}")
    print(f"   Length: {meta.info.length} bytes")
    print()

    print("2. Encoding to canonical bencode...")
    data = encode(meta)
    print(f"   Encoded: {len(data)} bytes")
    print(f"   {data!r}")
    print()

    print("3. Decoding...")
    decoded = decode_into(data, Metainfo)
    print(f"   Round trip equal: {decoded == meta}")
    generic = decode(data)
    print(f"   Top-level keys: {[key.decode() for key in generic.keys()]}")
    print()

    print("4. Rejecting non-canonical input...")
    for bad in (b"i-0e", b"i03e", b"d1:bi1e1:ai2ee", b"10:short"):
        try:
            decode(bad)
        except DecodeError as err:
            print(f"   {bad!r:20} -> {err.kind.name}: {err}")
    print()

    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
