"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from strictbencode import StructMetadataCache, clear_cache


@pytest.fixture
def torrent_bytes() -> bytes:
    """Canonical encoding of a small torrent metainfo dictionary."""
    return (
        b"d8:announce38:udp://tracker.publicbt.com:80/announce"
        b"13:announce-listll38:udp://tracker.publicbt.com:80/announceel"
        b"44:udp://tracker.openbittorrent.com:80/announceee"
        b"7:comment33:Debian CD from cdimage.debian.org"
        b"4:infod6:lengthi170917888e4:name30:debian-8.8.0-arm64-netinst.iso"
        b"12:piece lengthi262144eee"
    )


@pytest.fixture
def cache() -> StructMetadataCache:
    """An isolated record metadata cache."""
    return StructMetadataCache()


@pytest.fixture(autouse=True)
def reset_default_cache() -> None:
    """Start every test with an empty process-wide cache."""
    clear_cache()
