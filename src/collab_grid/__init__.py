"""
collab-grid: tagged CBOR envelopes for collaborative editor messages.

Builds document edit, stats and export events, wraps them in the "grid"
envelope (CBOR tag 0x67726964) and reads them back from any envelope form
written so far.
"""

from collab_grid.envelope import GRID_TAG, decode, encode, encode_native
from collab_grid.builders import (
    DEFAULT_PROTOCOL_HASH,
    build_edit,
    build_export,
    build_stats,
    edit_message,
    export_message,
    stats_message,
)
from collab_grid.handler import GridHandler, log_message, parse_message
from collab_grid.errors import (
    GridError,
    ValueModelError,
    EncodeFailure,
    DecodeError,
    DecodeMalformed,
    DecodeTagMismatch,
    DecodeShapeMismatch,
    CompressionError,
)
from collab_grid.models.message import DocumentEdit, DocumentStats, Message, Payload
from collab_grid.models.value import Tagged

__version__ = "0.1.0"
__all__ = [
    "GRID_TAG",
    "DEFAULT_PROTOCOL_HASH",
    "encode",
    "encode_native",
    "decode",
    "build_edit",
    "build_stats",
    "build_export",
    "edit_message",
    "stats_message",
    "export_message",
    "GridHandler",
    "parse_message",
    "log_message",
    "GridError",
    "ValueModelError",
    "EncodeFailure",
    "DecodeError",
    "DecodeMalformed",
    "DecodeTagMismatch",
    "DecodeShapeMismatch",
    "CompressionError",
    "Message",
    "Payload",
    "DocumentEdit",
    "DocumentStats",
    "Tagged",
]
