"""
Value model: the closed set of values allowed inside a payload ``data`` map,
and the CBOR codec they travel through.

Variants: text, integer, float, boolean, byte string, sequence, text-keyed
map, tag-wrapped value, and null. Sequences are normalised to tuples and maps
to read-only mappings so a checked value cannot be mutated in place.
"""

import io
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Union

import cbor2

from collab_grid.errors import DecodeMalformed, EncodeFailure, ValueModelError

# CBOR major type 6 (tag); argument widths keyed by additional-info value.
TAG_MAJOR_TYPE = 6
_ARGUMENT_WIDTHS = {24: 1, 25: 2, 26: 4, 27: 8}

# Tag numbers cbor2 turns into native objects (datetimes, bignums, decimals,
# shared/string references, sets, IP addresses, ...) or strips (self-describe).
# A nested Tagged value with one of these would not decode back to itself.
RESERVED_TAGS = frozenset(
    [*range(0, 6), *range(21, 38), 52, 54, 100, 256, *range(258, 264), 270, 1004, 55799]
)


@dataclass(frozen=True)
class Tagged:
    """A numeric CBOR tag wrapping an inner value."""
    tag: int
    value: Any


Value = Union[None, bool, int, float, str, bytes, tuple, Mapping, Tagged]


def check(value: Any) -> Value:
    """Validate ``value`` against the value model and return its normalised form.

    Raises :class:`ValueModelError` for anything outside the variant set,
    including maps with non-text keys and tags that cbor2 interprets itself.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (list, tuple)):
        return tuple(check(item) for item in value)
    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueModelError(f"map keys must be text, got {type(key).__name__}")
            result[key] = check(item)
        return MappingProxyType(result)
    if isinstance(value, (Tagged, cbor2.CBORTag)):
        return Tagged(_check_tag(value.tag), check(value.value))
    raise ValueModelError(f"unsupported value type: {type(value).__name__}")


def _check_tag(tag: Any) -> int:
    if isinstance(tag, bool) or not isinstance(tag, int) or not 0 <= tag < 2**64:
        raise ValueModelError(f"tag numbers must be unsigned 64-bit integers, got {tag!r}")
    if tag in RESERVED_TAGS:
        raise ValueModelError(f"tag {tag} has a built-in CBOR meaning and cannot wrap a value")
    return tag


def thaw(value: Value) -> Any:
    """Plain-``dict`` copy of a checked value, for JSON rendering."""
    if isinstance(value, Tagged):
        return Tagged(value.tag, thaw(value.value))
    if isinstance(value, tuple):
        return tuple(thaw(item) for item in value)
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    return value


def to_cbor(value: Value) -> Any:
    """Convert a checked value into objects ``cbor2`` knows how to encode."""
    if isinstance(value, Tagged):
        return cbor2.CBORTag(value.tag, to_cbor(value.value))
    if isinstance(value, tuple):
        return [to_cbor(item) for item in value]
    if isinstance(value, Mapping):
        return {key: to_cbor(item) for key, item in value.items()}
    return value


def dumps(value: Any) -> bytes:
    try:
        return cbor2.dumps(to_cbor(check(value)))
    except (ValueModelError, cbor2.CBOREncodeError, TypeError, ValueError) as e:
        raise EncodeFailure(f"CBOR encoding error: {e}") from e


def loads(data: bytes) -> Any:
    """Decode ``data`` as one generic CBOR value.

    A top-level tag is always returned as :class:`Tagged`, whatever its
    number, so tags cbor2 would otherwise interpret (datetimes, bignums,
    ...) stay visible to the envelope decoder. Nested values are returned
    the way cbor2 decodes them.
    """
    data = bytes(data)
    if not data:
        raise DecodeMalformed("empty input", form="generic")

    if data[0] >> 5 == TAG_MAJOR_TYPE:
        tag, offset = _read_tag_header(data)
        return Tagged(tag, load_plain(data[offset:]))
    return load_plain(data)


def load_plain(data: bytes) -> Any:
    """Decode exactly one CBOR item; bytes left over after it are an error."""
    fp = io.BytesIO(data)
    try:
        obj = cbor2.CBORDecoder(fp).decode()
    except cbor2.CBORDecodeError as e:
        raise DecodeMalformed(f"invalid CBOR data: {e}", form="generic") from e
    if fp.tell() != len(data):
        raise DecodeMalformed(
            f"trailing data: {len(data) - fp.tell()} bytes after the CBOR item", form="generic",
        )
    return obj


def _read_tag_header(data: bytes) -> tuple[int, int]:
    info = data[0] & 0x1F
    if info < 24:
        return info, 1

    width = _ARGUMENT_WIDTHS.get(info)
    if width is None:
        raise DecodeMalformed(f"invalid tag header byte 0x{data[0]:02x}", form="generic")

    end = 1 + width
    if len(data) < end:
        raise DecodeMalformed(
            f"truncated tag header: need {end} bytes, got {len(data)}", form="generic",
        )
    return int.from_bytes(data[1:end], "big"), end
