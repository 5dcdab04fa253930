from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar, Union

from .coerce import coerce
from .config import DecodeConfig, load_decode_config
from .errors import DecodeError, InvalidTarget, InvalidTargetShape, SchemaError
from .reader import Cursor, LayoutEntry
from .schema import FieldDescriptor, FieldKind, resolve

logger = logging.getLogger(__name__)

T = TypeVar("T")

Buffer = Union[bytes, bytearray, memoryview, str]
FieldHandler = Callable[[Any, FieldDescriptor, str], object]


def _buffer_bytes(data: Buffer, encoding: str) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode(encoding)
    raise TypeError(f"Unsupported buffer type {type(data).__name__}")


def check_target(target: Any) -> None:
    if target is None:
        raise InvalidTarget("input is None")
    if isinstance(target, type):
        raise InvalidTarget(
            f"input is the type {target.__name__}, not an instance; use decode()"
        )
    if not dataclasses.is_dataclass(target):
        raise InvalidTargetShape(
            f"input must be a dataclass instance, got {type(target).__name__}"
        )
    params = getattr(type(target), "__dataclass_params__", None)
    if params is not None and params.frozen:
        raise InvalidTarget(f"{type(target).__name__} is frozen")


def _blank(record_type: Type[T]) -> T:
    missing = [
        f.name
        for f in dataclasses.fields(record_type)  # type: ignore[arg-type]
        if f.init
        and f.default is dataclasses.MISSING
        and f.default_factory is dataclasses.MISSING
    ]
    if missing:
        raise SchemaError(
            f"{record_type.__name__} is not default-constructible "
            f"(no default for {', '.join(missing)})"
        )
    return record_type()


class Decoder:
    """
    Decodes flat records out of one buffer.

    Each decoder owns a single :class:`Cursor`. Calling :meth:`unmarshal`
    again continues from where the previous record ended.
    """

    def __init__(
        self,
        data: Buffer,
        *,
        encoding: Optional[str] = None,
        record_layout: Optional[bool] = None,
        trace: Optional[bool] = None,
        config: Optional[DecodeConfig] = None,
    ) -> None:
        cfg = config or load_decode_config()
        self.encoding = encoding or cfg.encoding
        self.trace = cfg.trace if trace is None else trace
        self._cursor = Cursor(
            _buffer_bytes(data, self.encoding),
            encoding=self.encoding,
            record_layout=cfg.record_layout if record_layout is None else record_layout,
        )
        self._handlers: Dict[FieldKind, FieldHandler] = {
            FieldKind.INTEGER: self._decode_scalar,
            FieldKind.TEXT: self._decode_scalar,
            FieldKind.NESTED: self._decode_nested,
            FieldKind.LIST_OF_INTEGER: self._decode_list,
            FieldKind.LIST_OF_TEXT: self._decode_list,
        }

    @property
    def offset(self) -> int:
        return self._cursor.offset

    def remaining(self) -> int:
        return self._cursor.remaining()

    def snapshot_layout(self) -> Tuple[LayoutEntry, ...]:
        return self._cursor.snapshot_layout()

    def unmarshal(self, target: Any) -> None:
        check_target(target)
        if self.trace:
            logger.debug(
                "Decoding %s at offset %d", type(target).__name__, self.offset
            )
        self._decode_record(target, "")

    def _decode_record(self, target: Any, prefix: str) -> None:
        struct = type(target).__name__
        for desc in resolve(type(target)):
            try:
                value = self._handlers[desc.kind](target, desc, prefix + desc.name)
                setattr(target, desc.name, value)
            except DecodeError as exc:
                exc.add_context(struct, desc.name)
                raise

    def _chunk(self, desc: FieldDescriptor, key: str) -> Tuple[bytes, int]:
        start = self._cursor.offset
        chunk = self._cursor.next_chunk(desc, key)
        if self.trace:
            logger.debug("%s [%d:%d] %r", key, start, self._cursor.offset, chunk)
        return chunk, start

    def _decode_scalar(self, target: Any, desc: FieldDescriptor, key: str) -> object:
        chunk, start = self._chunk(desc, key)
        return coerce(chunk, desc.kind, self.encoding, start)

    def _decode_nested(self, target: Any, desc: FieldDescriptor, key: str) -> object:
        assert desc.record_type is not None
        current = getattr(target, desc.name, None)
        if not isinstance(current, desc.record_type):
            current = _blank(desc.record_type)
        check_target(current)
        self._decode_record(current, key + ".")
        return current

    def _decode_list(self, target: Any, desc: FieldDescriptor, key: str) -> List[object]:
        items: List[object] = []
        index = 0
        while desc.count is None or index < desc.count:
            # Fixed-width elements have no separator to run out on.
            if desc.count is None and desc.separator is None and self._cursor.at_end():
                break
            try:
                chunk, start = self._chunk(desc, f"{key}[{index}]")
                if desc.count is None and not chunk:
                    break
                items.append(coerce(chunk, desc.kind, self.encoding, start))
            except DecodeError as exc:
                exc.mark_element(index)
                raise
            index += 1
        return items


def unmarshal(data: Buffer, target: Any, *, config: Optional[DecodeConfig] = None) -> None:
    """
    Populate the dataclass instance ``target`` from ``data``.

    Raises a :class:`~flatrecord.errors.DecodeError` subclass on failure; the
    target may be partially populated in that case and should be discarded.
    """
    check_target(target)
    Decoder(data, config=config).unmarshal(target)


def decode(data: Buffer, record_type: Type[T], *, config: Optional[DecodeConfig] = None) -> T:
    """Build an empty ``record_type`` and unmarshal ``data`` into it."""
    if not isinstance(record_type, type):
        raise InvalidTarget(f"{record_type!r} is not a record type")
    resolve(record_type)
    target = _blank(record_type)
    unmarshal(data, target, config=config)
    return target


__all__ = ["Buffer", "Decoder", "check_target", "decode", "unmarshal"]
