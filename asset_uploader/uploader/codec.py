"""Content encoding applied to a file before it is sent to the store."""

import asyncio
import gzip
import zlib

from asset_uploader.uploader.exceptions import EncodingError


def encode_content(raw: bytes, compress: bool) -> bytes:
    """
    Return the body to upload for ``raw``.

    Args:
        raw: File content
        compress: Gzip the content when True

    Returns:
        ``raw`` as bytes, or its gzip-compressed form

    Raises:
        EncodingError: If the compression backend fails

    Example:
        >>> encode_content(b"body", compress=False)
        b'body'
        >>> gzip.decompress(encode_content(b"body", compress=True))
        b'body'
    """
    if not compress:
        return bytes(raw)

    try:
        return gzip.compress(bytes(raw))
    except (zlib.error, OSError, ValueError, MemoryError) as e:
        raise EncodingError(f"gzip compression failed: {e}") from e


async def encode_content_async(raw: bytes, compress: bool) -> bytes:
    """Run ``encode_content`` in a worker thread when compressing."""
    if not compress:
        return encode_content(raw, compress)
    return await asyncio.to_thread(encode_content, raw, compress)
