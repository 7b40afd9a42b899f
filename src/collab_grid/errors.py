"""
collab-grid error types: codec failure taxonomy.
"""

from typing import Any, Optional


class GridError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ValueModelError(GridError):
    def __init__(self, message: str):
        super().__init__("value_model_error", message)


class EncodeFailure(GridError):
    def __init__(self, message: str):
        super().__init__("encode_failure", message)


class DecodeError(GridError):
    """Base for every decode failure.

    ``form`` names the envelope form that was being attempted when decoding
    gave up; ``details`` maps each form that was tried to the reason it did
    not apply.
    """

    def __init__(
        self,
        message: str,
        form: str,
        details: Optional[dict[str, Any]] = None,
        code: str = "decode_error",
    ):
        super().__init__(code, message, details)
        self.form = form


class DecodeMalformed(DecodeError):
    def __init__(self, message: str, form: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, form, details, code="decode_malformed")


class DecodeTagMismatch(DecodeError):
    def __init__(self, tag: int, form: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            f"Invalid tag: expected 0x67726964, got 0x{tag:x}", form, details,
            code="decode_tag_mismatch",
        )
        self.tag = tag


class DecodeShapeMismatch(DecodeError):
    def __init__(self, message: str, form: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, form, details, code="decode_shape_mismatch")


class CompressionError(GridError):
    def __init__(self, message: str):
        super().__init__("compression_error", message)
