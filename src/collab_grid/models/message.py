"""
Message records: the fixed envelope body and the two well-known payloads.
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError, field_serializer, field_validator

from collab_grid.errors import DecodeShapeMismatch, ValueModelError
from collab_grid.models import value

DOCUMENT_EDIT = "document_edit"
DOCUMENT_STATS = "document_stats"

EDIT_TYPES = ("insert", "delete", "replace", "format", "export")


class Payload(BaseModel):
    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    message_type: StrictStr
    data: dict[StrictStr, Any]

    @field_validator("data")
    @classmethod
    def check_values(cls, data: dict[str, Any]) -> Mapping[str, Any]:
        try:
            return value.check(data)
        except ValueModelError as e:
            raise ValueError(str(e)) from e

    @field_serializer("data")
    def dump_values(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return value.thaw(data)


class Message(BaseModel):
    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    protocol_hash: StrictStr  # opaque; never parsed
    payload: Payload

    def to_cbor(self) -> dict[str, Any]:
        """Map ready for cbor2, in the field order written on the wire."""
        return {
            "protocol_hash": self.protocol_hash,
            "payload": {
                "message_type": self.payload.message_type,
                "data": value.to_cbor(self.payload.data),
            },
        }


class DocumentEdit(BaseModel):
    """One collaborative edit event.

    ``timestamp`` is a local epoch-millisecond clock reading. Clocks are not
    synchronised between collaborators, so it must not be used to order
    edits from different users.
    """
    document_id: str
    edit_type: str  # one of EDIT_TYPES by convention; not enforced
    position: int
    content: str
    timestamp: float
    user_id: str

    def to_data(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "edit_type": self.edit_type,
            "position": self.position,
            "content": self.content,
            "timestamp": self.timestamp,
            "user_id": self.user_id,
        }

    @classmethod
    def from_payload(cls, payload: Payload) -> "DocumentEdit":
        return _read_fixed(cls, payload, DOCUMENT_EDIT)


class DocumentStats(BaseModel):
    """Statistics snapshot for a document."""
    document_id: str
    word_count: int
    char_count: int
    line_count: int
    timestamp: float
    user_id: str

    def to_data(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "word_count": self.word_count,
            "char_count": self.char_count,
            "line_count": self.line_count,
            "timestamp": self.timestamp,
            "user_id": self.user_id,
        }

    @classmethod
    def from_payload(cls, payload: Payload) -> "DocumentStats":
        return _read_fixed(cls, payload, DOCUMENT_STATS)


def _read_fixed(model: Any, payload: Payload, message_type: str) -> Any:
    """Read a well-known payload back as its typed record; the key set must match exactly."""
    if payload.message_type != message_type:
        raise DecodeShapeMismatch(
            f"expected message_type {message_type!r}, got {payload.message_type!r}",
            form="payload",
        )
    expected = set(model.model_fields)
    actual = set(payload.data)
    if actual != expected:
        raise DecodeShapeMismatch(
            f"{message_type} data keys mismatch",
            form="payload",
            details={"missing": sorted(expected - actual), "unexpected": sorted(actual - expected)},
        )
    try:
        return model.model_validate(dict(payload.data))
    except ValidationError as e:
        raise DecodeShapeMismatch(
            f"{message_type} data has wrong field types: {e.error_count()} error(s)",
            form="payload",
            details={"errors": [err["loc"] for err in e.errors()]},
        ) from e


def read_record(message: Message) -> Optional[BaseModel]:
    """Typed record for a well-known message, or None for other message types."""
    record_type = {DOCUMENT_EDIT: DocumentEdit, DOCUMENT_STATS: DocumentStats}.get(message.payload.message_type)
    if record_type is None:
        return None
    return record_type.from_payload(message.payload)
