"""Exceptions raised while decoding flat records."""

from __future__ import annotations

from typing import List, Optional, Tuple


class DecodeError(Exception):
    """
    Base class for every decode failure.

    The decoder prepends one ``(struct, field)`` frame per record level while
    the exception unwinds, so ``path`` reads outermost-first.
    """

    def __init__(self, message: str, *, offset: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset
        self._frames: List[Tuple[str, str]] = []
        self._element: Optional[int] = None

    def mark_element(self, index: int) -> None:
        """Tag the next frame added as list element ``index``."""
        self._element = index

    def add_context(self, struct: str, field: str) -> None:
        if self._element is not None:
            field = f"{field}[{self._element}]"
            self._element = None
        self._frames.insert(0, (struct, field))

    @property
    def frames(self) -> Tuple[Tuple[str, str], ...]:
        return tuple(self._frames)

    @property
    def struct(self) -> Optional[str]:
        return self._frames[-1][0] if self._frames else None

    @property
    def field(self) -> Optional[str]:
        return self._frames[-1][1] if self._frames else None

    @property
    def path(self) -> str:
        if not self._frames:
            return ""
        head = self._frames[0][0]
        return ".".join([head] + [field for _, field in self._frames])

    def __str__(self) -> str:
        text = self.message
        if self.offset is not None:
            text = f"{text} (offset {self.offset})"
        if self._frames:
            text = f"{self.path}: {text}"
        return text


class InvalidTarget(DecodeError):
    """Target is None, a type object, or an immutable instance."""


class InvalidTargetShape(DecodeError):
    """Target does not refer to a dataclass record."""


class SchemaError(DecodeError):
    """Field metadata cannot be turned into a decode strategy."""


class BufferUnderrun(DecodeError):
    """A fixed-length read asked for more bytes than remain."""

    def __init__(self, needed: int, remaining: int, offset: int) -> None:
        super().__init__(
            f"Insufficient bytes: need {needed}, have {remaining} remaining",
            offset=offset,
        )
        self.needed = needed
        self.remaining = remaining


class IntegerParseError(DecodeError):
    """Chunk is not a signed base-10 integer."""

    def __init__(self, chunk: bytes, *, offset: Optional[int] = None) -> None:
        super().__init__(f"unable to parse int from {chunk!r}", offset=offset)
        self.chunk = chunk


class TextDecodeError(DecodeError):
    """Chunk is not valid in the configured text encoding."""

    def __init__(
        self, chunk: bytes, encoding: str, *, offset: Optional[int] = None
    ) -> None:
        super().__init__(
            f"unable to decode {chunk!r} as {encoding}", offset=offset
        )
        self.chunk = chunk
        self.encoding = encoding


__all__ = [
    "BufferUnderrun",
    "DecodeError",
    "IntegerParseError",
    "InvalidTarget",
    "InvalidTargetShape",
    "SchemaError",
    "TextDecodeError",
]
