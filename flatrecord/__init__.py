"""
Declarative decoding of flat positional records.

Record layouts are declared on dataclass fields (``len``, ``sep``, ``padding``
and the legacy ``type`` attribute) and decoded in a single forward pass over a
byte buffer: fixed-width slots, separator-terminated fields, capped separator
scans, nested records and repeated elements.
"""

from .config import DecodeConfig, load_decode_config  # noqa: F401
from .decoder import Decoder, decode, unmarshal  # noqa: F401
from .errors import (  # noqa: F401
    BufferUnderrun,
    DecodeError,
    IntegerParseError,
    InvalidTarget,
    InvalidTargetShape,
    SchemaError,
    TextDecodeError,
)
from .reader import Cursor, LayoutEntry  # noqa: F401
from .schema import (  # noqa: F401
    FieldDescriptor,
    FieldKind,
    field,
    record,
    register,
    resolve,
)

__all__ = [
    "BufferUnderrun",
    "Cursor",
    "DecodeConfig",
    "DecodeError",
    "Decoder",
    "FieldDescriptor",
    "FieldKind",
    "IntegerParseError",
    "InvalidTarget",
    "InvalidTargetShape",
    "LayoutEntry",
    "SchemaError",
    "TextDecodeError",
    "decode",
    "field",
    "load_decode_config",
    "record",
    "register",
    "resolve",
    "unmarshal",
]
