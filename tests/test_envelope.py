import logging
import math

import cbor2
import pytest
from pydantic import ValidationError

from collab_grid import envelope
from collab_grid.envelope import GRID_TAG, TAG_HEADER, decode, encode, encode_native
from collab_grid.errors import (
    DecodeError,
    DecodeMalformed,
    DecodeShapeMismatch,
    DecodeTagMismatch,
    EncodeFailure,
)
from collab_grid.models.message import Message, Payload
from collab_grid.models.value import Tagged


def make_message(data=None, message_type="custom"):
    return Message(
        protocol_hash="QmTestHash",
        payload=Payload(message_type=message_type, data=data if data is not None else {"k": "v"}),
    )


class TestEncode:

    def test_manual_header(self, edit):
        data = encode(edit)
        assert data[:5] == bytes([0xDA, 0x67, 0x72, 0x69, 0x64])
        assert data[1:5] == b"grid"
        assert cbor2.loads(data[5:]) == edit.to_cbor()

    def test_header_constant(self):
        assert TAG_HEADER == b"\xdagrid"

    def test_native_form_bytes(self, edit):
        # A CBOR library writes the 4-byte tag with the same header bytes.
        data = encode_native(edit)
        assert data[:5] == TAG_HEADER
        decoded = cbor2.loads(data)
        assert decoded.tag == GRID_TAG

    def test_failure_yields_empty_bytes(self, edit, monkeypatch, caplog):
        def broken(_obj):
            raise EncodeFailure("boom")

        monkeypatch.setattr(envelope.value, "dumps", broken)
        with caplog.at_level(logging.ERROR, logger="collab_grid.envelope"):
            assert encode(edit) == b""
            assert encode_native(edit) == b""
        assert "boom" in caplog.text

    def test_logging_does_not_change_output(self, edit, caplog):
        quiet = encode(edit)
        with caplog.at_level(logging.DEBUG, logger="collab_grid.envelope"):
            loud = encode(edit)
        assert quiet == loud
        assert "Encoded grid envelope" in caplog.text


class TestRoundTrip:

    def test_edit(self, edit):
        assert decode(encode(edit)) == edit

    def test_rich_values(self):
        message = make_message({
            "text": "héllo",
            "big": 2**100,
            "negative": -(2**70),
            "float": 1.25,
            "flag": True,
            "nothing": None,
            "raw": b"\x00\xff",
            "seq": [1, [2, "three"]],
            "map": {"nested": {"deep": 1}},
            "tagged": Tagged(9999, {"inner": [1]}),
        })
        decoded = decode(encode(message))
        assert decoded == message
        assert decoded.payload.data["seq"] == (1, (2, "three"))
        assert decoded.payload.data["tagged"] == Tagged(9999, {"inner": (1,)})

    @pytest.mark.parametrize("tag", [0, 1, 2, 3, 258, 55799])
    def test_tags_cbor_interprets_cannot_be_built(self, tag):
        # These would decode to datetimes, bignums, sets or lose the tag entirely.
        with pytest.raises(ValidationError):
            make_message({"x": Tagged(tag, 5)})
        with pytest.raises(ValidationError):
            make_message({"x": [cbor2.CBORTag(tag, b"\x01")]})

    @pytest.mark.parametrize("tag", [6, 40, 1000, 2**32, 2**64 - 1])
    def test_nested_tags_survive(self, tag):
        message = make_message({"x": Tagged(tag, b"\x01"), "y": {"z": Tagged(tag, 3)}})
        assert decode(encode(message)) == message

    def test_map_order_irrelevant(self):
        first = make_message({"a": 1, "b": 2})
        second = make_message({"b": 2, "a": 1})
        assert decode(encode(first)) == second

    def test_empty_data_and_hash(self):
        message = Message(protocol_hash="", payload=Payload(message_type="", data={}))
        assert decode(encode(message)) == message

    def test_bytearray_input(self, edit):
        assert decode(bytearray(encode(edit))) == edit


class TestNativeForm:

    def test_accepted(self, edit):
        assert decode(encode_native(edit)) == decode(encode(edit)) == edit

    def test_eight_byte_tag_header(self, edit):
        # Non-minimal tag header: skips the manual recognizer, handled as native.
        data = b"\xdb" + GRID_TAG.to_bytes(8, "big") + cbor2.dumps(edit.to_cbor())
        assert decode(data) == edit

    @pytest.mark.parametrize("tag", [0x1, 0x2, 0x67726965, 9999])
    def test_tag_rejected(self, tag):
        data = cbor2.dumps(cbor2.CBORTag(tag, make_message().to_cbor()))
        with pytest.raises(DecodeTagMismatch) as info:
            decode(data)
        assert info.value.tag == tag
        assert info.value.form == "native"
        assert f"0x{tag:x}" in str(info.value)
        assert "manual" in info.value.details

    def test_tag_one_with_scalar(self):
        with pytest.raises(DecodeTagMismatch):
            decode(cbor2.dumps(cbor2.CBORTag(1, 1700000000)))

    def test_grid_tag_around_non_map(self):
        data = b"\xdb" + GRID_TAG.to_bytes(8, "big") + cbor2.dumps([1, 2])
        with pytest.raises(DecodeShapeMismatch) as info:
            decode(data)
        assert info.value.form == "native"


class TestUntaggedForm:

    def test_bare_map(self, edit):
        assert decode(cbor2.dumps(edit.to_cbor())) == edit

    def test_extra_keys_ignored(self, edit):
        raw = edit.to_cbor()
        raw["extra"] = 1
        assert decode(cbor2.dumps(raw)) == edit

    def test_wrong_shape(self):
        with pytest.raises(DecodeShapeMismatch) as info:
            decode(cbor2.dumps({"protocol_hash": "x"}))
        assert info.value.form == "untagged"
        assert any("payload" in err for err in info.value.details["errors"])

    def test_wrong_field_type(self):
        with pytest.raises(DecodeShapeMismatch):
            decode(cbor2.dumps({"protocol_hash": 5, "payload": {"message_type": "x", "data": {}}}))

    def test_non_text_data_key(self):
        with pytest.raises(DecodeShapeMismatch):
            decode(cbor2.dumps({"protocol_hash": "x", "payload": {"message_type": "x", "data": {1: 2}}}))

    @pytest.mark.parametrize("obj", [42, "text", [1, 2], 1.5, None])
    def test_not_a_map(self, obj):
        with pytest.raises(DecodeShapeMismatch) as info:
            decode(cbor2.dumps(obj))
        assert set(info.value.details) == {"manual", "native", "untagged"}


class TestMalformed:

    def test_every_prefix_fails_cleanly(self, edit):
        data = encode(edit)
        for end in range(len(data)):
            with pytest.raises(DecodeError):
                decode(data[:end])

    def test_empty(self):
        with pytest.raises(DecodeMalformed) as info:
            decode(b"")
        assert info.value.form == "native"
        assert "manual" in info.value.details

    def test_header_only(self):
        with pytest.raises(DecodeMalformed) as info:
            decode(TAG_HEADER)
        assert info.value.form == "manual"

    def test_manual_header_with_garbage_body(self):
        with pytest.raises(DecodeMalformed):
            decode(TAG_HEADER + b"\xa2\x61")

    @pytest.mark.parametrize("wrap", [
        encode,
        lambda m: cbor2.dumps(m.to_cbor()),
        lambda m: b"\xdb" + GRID_TAG.to_bytes(8, "big") + cbor2.dumps(m.to_cbor()),
    ], ids=["manual", "untagged", "native"])
    def test_trailing_bytes_rejected(self, edit, wrap):
        with pytest.raises(DecodeMalformed) as info:
            decode(wrap(edit) + b"\xff\xff\xff")
        assert "trailing data" in str(info.value)

    def test_manual_header_with_non_map_body(self):
        with pytest.raises(DecodeShapeMismatch) as info:
            decode(TAG_HEADER + cbor2.dumps("just text"))
        assert info.value.form == "manual"


def test_decode_logs_recognized_form(edit, caplog):
    with caplog.at_level(logging.DEBUG, logger="collab_grid.envelope"):
        decode(encode(edit))
    assert "Found manual grid tag header" in caplog.text


def test_builder_timestamp_survives(edit):
    decoded = decode(encode(edit))
    timestamp = decoded.payload.data["timestamp"]
    assert isinstance(timestamp, float)
    assert math.isfinite(timestamp)
    assert timestamp == 1700000000123.5
