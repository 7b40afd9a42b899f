"""Gzip compression of document text."""

import gzip
import zlib

from collab_grid.errors import CompressionError


def compress_document(data: str) -> bytes:
    return gzip.compress(data.encode("utf-8"))


def decompress_document(compressed: bytes) -> str:
    """Inverse of :func:`compress_document`.

    Text that is not valid UTF-8 after decompression yields ``""``; bytes that
    are not gzip data raise :class:`CompressionError`.
    """
    try:
        raw = gzip.decompress(compressed)
    except (OSError, EOFError, zlib.error) as e:
        raise CompressionError(f"Failed to decompress document: {e}")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return ""
