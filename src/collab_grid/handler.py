"""
Boundary adapter: encode, parse-to-text and log operations that never raise.

Every failure is turned into a value: an empty byte string from the encoders,
an error string from :meth:`GridHandler.parse_message`, or an ERROR log
record from :meth:`GridHandler.log_message`.
"""

import logging
from typing import Optional

from pydantic_core import PydanticSerializationError

from collab_grid import builders
from collab_grid.envelope import decode, encode
from collab_grid.errors import DecodeError
from collab_grid.models.message import Message

PARSE_ERROR_PREFIX = "CBOR parsing error: "
SERIALIZATION_ERROR_PREFIX = "JSON serialization error: "


def render(message: Message) -> str:
    """Pretty JSON dump of every field; deterministic for a given message."""
    return message.model_dump_json(indent=2)


class GridHandler:
    def __init__(self, protocol_hash: str = builders.DEFAULT_PROTOCOL_HASH, logger: Optional[logging.Logger] = None):
        self._protocol_hash = protocol_hash
        self._logger = logger or logging.getLogger(__name__)

    @property
    def protocol_hash(self) -> str:
        return self._protocol_hash

    def create_edit_message(self, document_id: str, edit_type: str, position: int, content: str, user_id: str) -> bytes:
        return builders.edit_message(
            document_id, edit_type, position, content, user_id, protocol_hash=self._protocol_hash,
        )

    def create_stats_message(
        self, document_id: str, word_count: int, char_count: int, line_count: int, user_id: str,
    ) -> bytes:
        return builders.stats_message(
            document_id, word_count, char_count, line_count, user_id, protocol_hash=self._protocol_hash,
        )

    def export_document(self, document_content: str, document_id: str, user_id: str) -> bytes:
        return builders.export_message(
            document_content, document_id, user_id, protocol_hash=self._protocol_hash,
        )

    def encode(self, message: Message) -> bytes:
        return encode(message)

    def parse_message(self, data: bytes) -> str:
        """Decode ``data`` and render it as pretty JSON, or return a prefixed error string."""
        try:
            message = decode(data)
        except DecodeError as e:
            return f"{PARSE_ERROR_PREFIX}{e}"
        except TypeError as e:
            return f"{PARSE_ERROR_PREFIX}expected bytes, {e}"
        try:
            return render(message)
        except PydanticSerializationError as e:
            return f"{SERIALIZATION_ERROR_PREFIX}{e}"

    def log_message(self, data: bytes) -> None:
        text = self.parse_message(data)
        if text.startswith((PARSE_ERROR_PREFIX, SERIALIZATION_ERROR_PREFIX)):
            self._logger.error(f"Error parsing grid message: {text}")
        else:
            self._logger.info(f"Grid message: {text}")


_default_handler = GridHandler()


def parse_message(data: bytes) -> str:
    return _default_handler.parse_message(data)


def log_message(data: bytes) -> None:
    _default_handler.log_message(data)
