import gzip

import pytest

from collab_grid.compression import compress_document, decompress_document
from collab_grid.errors import CompressionError


def test_compress_is_gzip():
    data = compress_document("hello héllo")
    assert data[:2] == b"\x1f\x8b"
    assert gzip.decompress(data).decode("utf-8") == "hello héllo"


def test_decompress():
    assert decompress_document(compress_document("# Doc\n\ntext")) == "# Doc\n\ntext"


def test_decompress_invalid_utf8():
    assert decompress_document(gzip.compress(b"\xff\xfe")) == ""


def test_decompress_not_gzip():
    with pytest.raises(CompressionError):
        decompress_document(b"plain bytes")


def test_decompress_truncated():
    with pytest.raises(CompressionError):
        decompress_document(compress_document("some text to compress")[:10])
