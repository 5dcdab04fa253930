from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .config import DEFAULT_ENCODING
from .errors import BufferUnderrun, SchemaError
from .schema import FieldDescriptor

# Why a chunk ended; stored in layout entries under ``meta["stop"]``.
STOP_LENGTH = "length"
STOP_SEPARATOR = "separator"
STOP_CAP = "cap"
STOP_END = "end"


@dataclass(frozen=True)
class LayoutEntry:
    key: str
    kind: str
    meta: Dict[str, object]


@dataclass
class Cursor:
    """
    Forward-only reader over a record buffer.

    ``offset`` never decreases and never passes ``len(data)``. A cursor is
    owned by exactly one decode pass; nested records share their parent's
    cursor.
    """

    data: bytes
    offset: int = 0
    encoding: str = DEFAULT_ENCODING
    record_layout: bool = False
    _layout: List[LayoutEntry] = field(default_factory=list, init=False)
    _separators: Dict[int, bytes] = field(default_factory=dict, init=False)

    def remaining(self) -> int:
        return len(self.data) - self.offset

    def at_end(self) -> bool:
        return self.offset >= len(self.data)

    def _require(self, count: int) -> None:
        if count > self.remaining():
            raise BufferUnderrun(count, self.remaining(), self.offset)

    def separator_bytes(self, code_point: int) -> bytes:
        sep = self._separators.get(code_point)
        if sep is None:
            try:
                sep = chr(code_point).encode(self.encoding)
            except UnicodeEncodeError as exc:
                raise SchemaError(
                    f"separator U+{code_point:04X} is not encodable as {self.encoding}"
                ) from exc
            self._separators[code_point] = sep
        return sep

    def read(self, count: int) -> bytes:
        self._require(count)
        chunk = self.data[self.offset : self.offset + count]
        self.offset += count
        return chunk

    def read_until(self, sep: bytes, cap: Optional[int] = None) -> Tuple[bytes, str]:
        """
        Read up to the next ``sep``, consuming and dropping it.

        With ``cap`` the separator must start within the next ``cap`` bytes;
        otherwise exactly ``cap`` bytes are returned and nothing is dropped.
        Without a match the rest of the buffer is returned.
        """
        start = self.offset
        if cap:
            idx = self.data.find(sep, start, start + cap + len(sep) - 1)
        else:
            idx = self.data.find(sep, start)
        if idx >= 0:
            self.offset = idx + len(sep)
            return self.data[start:idx], STOP_SEPARATOR
        if cap and self.remaining() >= cap:
            self.offset = start + cap
            return self.data[start : self.offset], STOP_CAP
        self.offset = len(self.data)
        return self.data[start:], STOP_END

    def next_chunk(self, descriptor: FieldDescriptor, key: Optional[str] = None) -> bytes:
        start = self.offset
        if descriptor.separator is None:
            chunk = self.read(descriptor.length or 0)
            stop = STOP_LENGTH
        else:
            chunk, stop = self.read_until(
                self.separator_bytes(descriptor.separator), descriptor.length
            )
        self.record_chunk(key or descriptor.name, descriptor.kind.value, start, stop)
        return chunk

    def record_chunk(self, key: str, kind: str, start: int, stop: str) -> None:
        if not self.record_layout:
            return
        self._layout.append(
            LayoutEntry(
                key=key,
                kind=kind,
                meta={
                    "offset": start,
                    "length_bytes": self.offset - start,
                    "stop": stop,
                },
            )
        )

    def snapshot_layout(self) -> Tuple[LayoutEntry, ...]:
        return tuple(self._layout)


__all__ = [
    "Cursor",
    "LayoutEntry",
    "STOP_CAP",
    "STOP_END",
    "STOP_LENGTH",
    "STOP_SEPARATOR",
]
