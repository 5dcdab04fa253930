from __future__ import annotations

import gc
import weakref
from typing import List

from flatrecord import FieldKind, decode, field, record, resolve
from flatrecord.schema import clear_schema_cache

SEP = b"\x1c"


def test_local_records_can_nest() -> None:
    @record
    class Inner:
        code: int = field(len=2)

    @record
    class Outer:
        inner: Inner
        names: List[str] = field(sep=0x1C)

    kinds = [desc.kind for desc in resolve(Outer)]
    assert kinds == [FieldKind.NESTED, FieldKind.LIST_OF_TEXT]
    decoded = decode(b"42a" + SEP + b"b", Outer)
    assert decoded.inner == Inner(42)
    assert decoded.names == ["a", "b"]


def test_local_nesting_with_decorator_arguments() -> None:
    @record(eq=True)
    class Inner:
        code: int = field(len=1)

    @record(eq=True)
    class Outer:
        first: Inner
        second: Inner

    assert decode(b"12", Outer) == Outer(Inner(1), Inner(2))


def test_local_records_survive_cache_clear() -> None:
    @record
    class Inner:
        code: int = field(len=1)

    @record
    class Outer:
        inner: Inner

    clear_schema_cache()
    (desc,) = resolve(Outer)
    assert desc.record_type is Inner


def test_schema_cache_does_not_keep_types_alive() -> None:
    @record
    class Transient:
        code: int = field(len=1)

    resolve(Transient)
    ref = weakref.ref(Transient)
    del Transient
    gc.collect()
    assert ref() is None
