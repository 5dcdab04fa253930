import pytest

from flatrecord import config
from flatrecord.decoder import Decoder


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in (
        "FLATRECORD_ENCODING",
        "FLATRECORD_RECORD_LAYOUT",
        "FLATRECORD_TRACE",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


def test_default_config() -> None:
    cfg = config.load_decode_config()
    assert cfg.encoding == "utf-8"
    assert cfg.record_layout is False
    assert cfg.trace is False


def test_flags_parse_truthy_values(monkeypatch) -> None:
    monkeypatch.setenv("FLATRECORD_RECORD_LAYOUT", "1")
    monkeypatch.setenv("FLATRECORD_TRACE", " Yes ")
    cfg = config.load_decode_config()
    assert cfg.record_layout is True
    assert cfg.trace is True

    monkeypatch.setenv("FLATRECORD_TRACE", "OFF")
    assert config.load_decode_config().trace is False


def test_blank_encoding_falls_back(monkeypatch) -> None:
    monkeypatch.setenv("FLATRECORD_ENCODING", "  ")
    assert config.load_decode_config().encoding == "utf-8"

    monkeypatch.setenv("FLATRECORD_ENCODING", "latin-1")
    assert config.load_decode_config().encoding == "latin-1"


def test_decoder_picks_up_environment(monkeypatch) -> None:
    monkeypatch.setenv("FLATRECORD_ENCODING", "latin-1")
    decoder = Decoder("é")
    assert decoder.encoding == "latin-1"
    assert decoder.remaining() == 1


def test_keyword_arguments_override_config() -> None:
    cfg = config.DecodeConfig(encoding="latin-1", record_layout=True, trace=True)
    decoder = Decoder(b"", encoding="ascii", record_layout=False, trace=False, config=cfg)
    assert decoder.encoding == "ascii"
    assert decoder.trace is False
