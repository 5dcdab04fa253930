from __future__ import annotations

import os
from typing import List

import pytest
from hypothesis import HealthCheck, given, settings

from flatrecord import DecodeError, Decoder, decode

from .models import FS_BYTE, Envelope, FixedNumbers, Numbers, Outcome, Tokens
from .strategies import (
    fixed_width_ints,
    int_lists,
    record_buffers,
    token_lists,
)

FAST_MAX_EXAMPLES = int(os.getenv("FLATRECORD_PROP_EXAMPLES", "300"))
NIGHTLY_MAX_EXAMPLES = int(os.getenv("FLATRECORD_PROP_NIGHTLY_EXAMPLES", "5000"))


def _attempt(data: bytes) -> Outcome:
    decoder = Decoder(data, record_layout=True, trace=False)
    target = Envelope()
    try:
        decoder.unmarshal(target)
    except DecodeError as exc:
        return Outcome(
            value=None,
            error=(type(exc).__name__, str(exc)),
            layout=decoder.snapshot_layout(),
            offset=decoder.offset,
        )
    return Outcome(
        value=target, error=None, layout=decoder.snapshot_layout(), offset=decoder.offset
    )


def _check_monotonic(data: bytes, outcome: Outcome) -> None:
    last_end = 0
    for entry in outcome.layout:
        start = entry.meta["offset"]
        length = entry.meta["length_bytes"]
        assert isinstance(start, int) and isinstance(length, int)
        assert start >= last_end
        assert length >= 0
        last_end = start + length
        assert last_end <= len(data)
    assert last_end <= outcome.offset <= len(data)


@given(data=record_buffers())
@settings(
    max_examples=FAST_MAX_EXAMPLES,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
def test_prop_decode_is_deterministic(data: bytes) -> None:
    assert _attempt(data) == _attempt(data)


@given(data=record_buffers())
@settings(
    max_examples=FAST_MAX_EXAMPLES,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
def test_prop_cursor_is_monotonic(data: bytes) -> None:
    _check_monotonic(data, _attempt(data))


@given(items=token_lists())
@settings(max_examples=FAST_MAX_EXAMPLES, deadline=None)
def test_prop_separated_tokens_round_trip(items: List[str]) -> None:
    data = FS_BYTE.join(item.encode("ascii") for item in items)
    assert decode(data, Tokens).items == items


@given(values=int_lists())
@settings(max_examples=FAST_MAX_EXAMPLES, deadline=None)
def test_prop_separated_ints_round_trip(values: List[int]) -> None:
    data = FS_BYTE.join(b"%d" % value for value in values)
    assert decode(data, Numbers).values == values


@given(values=fixed_width_ints())
@settings(max_examples=FAST_MAX_EXAMPLES, deadline=None)
def test_prop_fixed_width_ints_round_trip(values: List[int]) -> None:
    data = b"".join(b"%04d" % value for value in values)
    assert decode(data, FixedNumbers).values == values


@pytest.mark.nightly
@given(data=record_buffers())
@settings(
    max_examples=NIGHTLY_MAX_EXAMPLES,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
def test_prop_decode_nightly(data: bytes) -> None:
    if not os.getenv("FLATRECORD_PROP_RUN_NIGHTLY"):
        pytest.skip("Nightly fuzzing disabled (set FLATRECORD_PROP_RUN_NIGHTLY=1 to enable)")
    outcome = _attempt(data)
    _check_monotonic(data, outcome)
    assert outcome == _attempt(data)
