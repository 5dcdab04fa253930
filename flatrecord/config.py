from __future__ import annotations

from dataclasses import dataclass
import os

DEFAULT_ENCODING = "utf-8"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().casefold()
    return normalized not in {"0", "false", "off", ""}


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class DecodeConfig:
    encoding: str = DEFAULT_ENCODING
    record_layout: bool = False
    trace: bool = False


def load_decode_config() -> DecodeConfig:
    return DecodeConfig(
        encoding=_env_str("FLATRECORD_ENCODING", DEFAULT_ENCODING),
        record_layout=_env_flag("FLATRECORD_RECORD_LAYOUT", default=False),
        trace=_env_flag("FLATRECORD_TRACE", default=False),
    )


__all__ = ["DEFAULT_ENCODING", "DecodeConfig", "load_decode_config"]
