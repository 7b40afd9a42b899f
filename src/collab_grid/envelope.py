"""
Grid envelope construction and parsing.

Canonical (manual) form written by :func:`encode`::

    [0xDA][0x67 0x72 0x69 0x64][CBOR map of the Message]

0xDA is a CBOR major-type-6 header with a 4-byte argument; the argument is
the tag 0x67726964 ("grid"). Readers also accept the older native form (a
single CBOR tag value produced by a CBOR library) and bare untagged maps.
"""

import logging
from typing import Any, Callable

from pydantic import ValidationError

from collab_grid.errors import (
    DecodeMalformed,
    DecodeShapeMismatch,
    DecodeTagMismatch,
    EncodeFailure,
)
from collab_grid.models import value
from collab_grid.models.message import Message
from collab_grid.models.value import Tagged

logger = logging.getLogger(__name__)

GRID_TAG = 0x67726964
TAG_HEADER = bytes([0xDA]) + GRID_TAG.to_bytes(4, "big")

MANUAL = "manual"
NATIVE = "native"
UNTAGGED = "untagged"


def encode(message: Message) -> bytes:
    """Serialize ``message`` in the canonical manual form.

    Never raises: a serialization failure is logged and yields ``b""``,
    which callers treat as "nothing to send".
    """
    try:
        body = value.dumps(message.to_cbor())
    except EncodeFailure as e:
        logger.error(f"Grid encode failed: {e}")
        return b""
    envelope = TAG_HEADER + body
    logger.debug(f"Encoded grid envelope ({len(envelope)} bytes)")
    return envelope


def encode_native(message: Message) -> bytes:
    """Serialize ``message`` as a single native CBOR tag value (legacy writers)."""
    try:
        return value.dumps(Tagged(GRID_TAG, message.to_cbor()))
    except EncodeFailure as e:
        logger.error(f"Grid native encode failed: {e}")
        return b""


class _Input:
    """Raw bytes plus the lazily decoded generic value shared by the recognizers."""

    def __init__(self, data: bytes):
        self.data = data
        self.attempts: dict[str, str] = {}
        self._value: Any = None
        self._decoded = False

    def generic(self, form: str) -> Any:
        if not self._decoded:
            try:
                self._value = value.loads(self.data)
            except DecodeMalformed as e:
                raise DecodeMalformed(str(e), form, dict(self.attempts)) from e
            self._decoded = True
        return self._value


class _NotApplicable(Exception):
    pass


def _as_message(obj: Any, form: str, attempts: dict[str, str]) -> Message:
    if not isinstance(obj, dict):
        raise DecodeShapeMismatch(
            f"{form} form: expected a map, got {type(obj).__name__}", form, dict(attempts),
        )
    try:
        return Message.model_validate(obj)
    except ValidationError as e:
        details = dict(attempts)
        details["errors"] = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise DecodeShapeMismatch(
            f"{form} form: map is not a grid message ({e.error_count()} error(s))", form, details,
        ) from e


def _recognize_manual(raw: _Input) -> Message:
    data = raw.data
    if len(data) < len(TAG_HEADER):
        raise _NotApplicable(f"input shorter than {len(TAG_HEADER)}-byte header")
    if data[:len(TAG_HEADER)] != TAG_HEADER:
        raise _NotApplicable("no grid tag header")

    logger.debug("Found manual grid tag header")
    try:
        obj = value.load_plain(data[len(TAG_HEADER):])
    except DecodeMalformed as e:
        raise DecodeMalformed(f"manual form: {e}", MANUAL, dict(raw.attempts)) from e
    return _as_message(obj, MANUAL, raw.attempts)


def _recognize_native(raw: _Input) -> Message:
    obj = raw.generic(NATIVE)
    if not isinstance(obj, Tagged):
        raise _NotApplicable(f"top-level value is {type(obj).__name__}, not a tag")

    logger.debug(f"Found tag: 0x{obj.tag:x}")
    if obj.tag != GRID_TAG:
        raise DecodeTagMismatch(obj.tag, NATIVE, dict(raw.attempts))
    return _as_message(obj.value, NATIVE, raw.attempts)


def _recognize_untagged(raw: _Input) -> Message:
    obj = raw.generic(UNTAGGED)
    if not isinstance(obj, dict):
        raise _NotApplicable(f"top-level value is {type(obj).__name__}, not a map")

    logger.debug("Parsing untagged grid message")
    return _as_message(obj, UNTAGGED, raw.attempts)


# Tried in priority order; the first recognizer that applies decides the outcome.
RECOGNIZERS: list[tuple[str, Callable[[_Input], Message]]] = [
    (MANUAL, _recognize_manual),
    (NATIVE, _recognize_native),
    (UNTAGGED, _recognize_untagged),
]


def decode(data: bytes) -> Message:
    """Recover a :class:`Message` from any accepted envelope form.

    Raises a :class:`DecodeError` subclass naming the form that failed and
    why each earlier form did not apply.
    """
    raw = _Input(bytes(data))
    logger.debug(f"Parsing {len(raw.data)} bytes")

    for form, recognize in RECOGNIZERS:
        try:
            return recognize(raw)
        except _NotApplicable as e:
            raw.attempts[form] = str(e)

    raise DecodeShapeMismatch(
        "Message is not tagged with the grid tag and is not a message map",
        UNTAGGED,
        dict(raw.attempts),
    )

