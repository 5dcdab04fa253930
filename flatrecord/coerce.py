from __future__ import annotations

import re
from typing import Callable, Dict, Optional

from .config import DEFAULT_ENCODING
from .errors import IntegerParseError, TextDecodeError
from .schema import FieldKind

# Signed base-10 only; int() would also take whitespace, underscores and
# non-ASCII digits.
_INTEGER_RE = re.compile(rb"[+-]?[0-9]+")

Coercer = Callable[[bytes, str, Optional[int]], object]


def parse_int(chunk: bytes, encoding: str = DEFAULT_ENCODING, offset: Optional[int] = None) -> int:
    if not _INTEGER_RE.fullmatch(chunk):
        raise IntegerParseError(chunk, offset=offset)
    return int(chunk)


def parse_text(chunk: bytes, encoding: str = DEFAULT_ENCODING, offset: Optional[int] = None) -> str:
    try:
        return chunk.decode(encoding)
    except UnicodeDecodeError as exc:
        raise TextDecodeError(chunk, encoding, offset=offset) from exc


SCALAR_COERCERS: Dict[FieldKind, Coercer] = {
    FieldKind.INTEGER: parse_int,
    FieldKind.TEXT: parse_text,
}


def coerce(
    chunk: bytes,
    kind: FieldKind,
    encoding: str = DEFAULT_ENCODING,
    offset: Optional[int] = None,
) -> object:
    """Convert one raw chunk to the scalar value of ``kind`` (list kinds use their element)."""
    coercer = SCALAR_COERCERS.get(kind.element)
    if coercer is None:
        raise TypeError(f"No scalar coercion for {kind.value}")
    return coercer(chunk, encoding, offset)


__all__ = ["SCALAR_COERCERS", "coerce", "parse_int", "parse_text"]
