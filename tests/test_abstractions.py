"""Tests for SDK abstractions: error taxonomy, NoOpSTTEngine."""

from __future__ import annotations

import pickle

import pytest

from sdk import (
    ContextError,
    EngineError,
    NoOpSTTEngine,
    ParseError,
    PipelineError,
    ResourceError,
    ShapeError,
    STTEngine,
)


def test_error_hierarchy() -> None:
    assert issubclass(ParseError, ResourceError)
    for cls in (ResourceError, EngineError, ShapeError, ContextError):
        assert issubclass(cls, PipelineError)
    assert not issubclass(ShapeError, ResourceError)


@pytest.mark.parametrize("cls", [ResourceError, ParseError, EngineError, ShapeError, ContextError])
def test_errors_survive_pickling(cls) -> None:
    # Errors raised inside the worker process cross back to the parent pickled.
    err = pickle.loads(pickle.dumps(cls("boom")))
    assert type(err) is cls
    assert str(err) == "boom"


def test_noop_stt_engine_transcribe_returns_empty() -> None:
    stt = NoOpSTTEngine()
    assert isinstance(stt, STTEngine)
    assert stt.transcribe(b"") == ""
    assert stt.transcribe(b"\x00\x00\x00\x00") == ""


def test_noop_stt_engine_start_stop_no_op() -> None:
    stt = NoOpSTTEngine()
    stt.start()
    stt.stop()
    assert stt.transcribe(b"x") == ""


def test_stt_engine_is_abstract() -> None:
    with pytest.raises(TypeError):
        STTEngine()
