"""
Typed builders for the well-known grid messages.

``build_*`` return a :class:`Message`; the matching ``*_message`` functions
encode it straight away. Inputs are passed through unvalidated; the encoded
variants return ``b""`` if the result is not a valid message.
"""

import logging
import time
from typing import Any, Callable, Optional

from pydantic import ValidationError

from collab_grid.envelope import encode
from collab_grid.models.message import (
    DOCUMENT_EDIT,
    DOCUMENT_STATS,
    DocumentEdit,
    DocumentStats,
    Message,
    Payload,
)
from collab_grid.stats import calculate_document_stats

# Placeholder until protocol specs are content-addressed.
DEFAULT_PROTOCOL_HASH = "QmPromiseGridProtocolV1"

logger = logging.getLogger(__name__)


def now_ms() -> float:
    """Local wall clock in epoch milliseconds. Not synchronised across users."""
    return time.time() * 1000.0


def build_edit(
    document_id: str,
    edit_type: str,
    position: int,
    content: str,
    user_id: str,
    *,
    timestamp: Optional[float] = None,
    protocol_hash: str = DEFAULT_PROTOCOL_HASH,
) -> Message:
    edit = DocumentEdit.model_construct(
        document_id=document_id,
        edit_type=edit_type,
        position=position,
        content=content,
        timestamp=now_ms() if timestamp is None else timestamp,
        user_id=user_id,
    )
    return Message(
        protocol_hash=protocol_hash,
        payload=Payload(message_type=DOCUMENT_EDIT, data=edit.to_data()),
    )


def build_stats(
    document_id: str,
    word_count: int,
    char_count: int,
    line_count: int,
    user_id: str,
    *,
    timestamp: Optional[float] = None,
    protocol_hash: str = DEFAULT_PROTOCOL_HASH,
) -> Message:
    stats = DocumentStats.model_construct(
        document_id=document_id,
        word_count=word_count,
        char_count=char_count,
        line_count=line_count,
        timestamp=now_ms() if timestamp is None else timestamp,
        user_id=user_id,
    )
    return Message(
        protocol_hash=protocol_hash,
        payload=Payload(message_type=DOCUMENT_STATS, data=stats.to_data()),
    )


def build_export(
    document_content: str,
    document_id: str,
    user_id: str,
    *,
    timestamp: Optional[float] = None,
    protocol_hash: str = DEFAULT_PROTOCOL_HASH,
) -> Message:
    """A whole-document export is an edit of type "export" at position 0."""
    return build_edit(
        document_id, "export", 0, document_content, user_id,
        timestamp=timestamp, protocol_hash=protocol_hash,
    )


def _encoded(build: Callable[..., Message], *args: Any, **kwargs: Any) -> bytes:
    try:
        message = build(*args, **kwargs)
    except ValidationError as e:
        logger.error(f"Cannot build {build.__name__} message: {e.error_count()} invalid field(s): {e}")
        return b""
    return encode(message)


def edit_message(document_id: str, edit_type: str, position: int, content: str, user_id: str, **kwargs) -> bytes:
    return _encoded(build_edit, document_id, edit_type, position, content, user_id, **kwargs)


def stats_message(document_id: str, word_count: int, char_count: int, line_count: int, user_id: str, **kwargs) -> bytes:
    return _encoded(build_stats, document_id, word_count, char_count, line_count, user_id, **kwargs)


def export_message(document_content: str, document_id: str, user_id: str, **kwargs) -> bytes:
    return _encoded(build_export, document_content, document_id, user_id, **kwargs)


def stats_message_for_text(text: str, document_id: str, user_id: str, **kwargs) -> bytes:
    """Compute statistics for ``text`` and encode them as a stats message."""
    stats = calculate_document_stats(text)
    return stats_message(
        document_id, stats.words, stats.chars_without_spaces, stats.lines, user_id, **kwargs,
    )
