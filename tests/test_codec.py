"""Tests for content encoding."""

import asyncio
import gzip
import zlib
from unittest.mock import patch

import pytest

from asset_uploader.uploader import EncodingError, encode_content
from asset_uploader.uploader.codec import encode_content_async


def test_encode_without_compression_returns_same_bytes():
    """Test passthrough returns the content unchanged as bytes."""
    body = encode_content(bytearray(b"console.log(1)"), compress=False)

    assert body == b"console.log(1)"
    assert isinstance(body, bytes)


def test_gzip_round_trip():
    """Test compressed content decompresses to the original."""
    raw = b"body { color: red; }\n" * 200

    body = encode_content(raw, compress=True)

    assert body != raw
    assert len(body) < len(raw)
    assert gzip.decompress(body) == raw


def test_compression_failure_raises_encoding_error():
    """Test backend errors surface as EncodingError."""
    with patch(
        "asset_uploader.uploader.codec.gzip.compress",
        side_effect=zlib.error("stream error"),
    ):
        with pytest.raises(EncodingError, match="stream error"):
            encode_content(b"data", compress=True)


def test_async_encode_matches_sync():
    """Test the async wrapper produces the same body."""
    raw = b"<svg></svg>"

    assert asyncio.run(encode_content_async(raw, compress=False)) == raw
    assert gzip.decompress(asyncio.run(encode_content_async(raw, compress=True))) == raw
