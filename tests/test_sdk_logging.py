"""Tests for sdk.logging: get_logger, parse_level, configure_logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from sdk import LOG_FORMAT, configure_logging, get_logger, parse_level


@pytest.fixture
def root_logger():
    """Root logger with its handlers and level restored after the test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)


# ---- get_logger ----
def test_get_logger_returns_logger() -> None:
    logger = get_logger("coordinator")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "voicecode.coordinator"


def test_get_logger_blank_names_map_to_pipeline() -> None:
    assert get_logger("").name == "voicecode.pipeline"
    assert get_logger(None).name == "voicecode.pipeline"
    assert get_logger("  worker  ").name == "voicecode.worker"


# ---- parse_level ----
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
        (None, logging.INFO),
        ("basicConfig", logging.INFO),
    ],
)
def test_parse_level(value, expected: int) -> None:
    assert parse_level(value) == expected


# ---- configure_logging ----
def test_configure_logging_keeps_existing_handlers(root_logger: logging.Logger) -> None:
    before = list(root_logger.handlers)
    assert configure_logging("debug") == logging.DEBUG
    if before:
        assert root_logger.handlers == before


def test_configure_logging_adds_file_handler(root_logger: logging.Logger, tmp_path: Path) -> None:
    configure_logging("info", "logs/voicecode.log", base_dir=tmp_path)
    path = tmp_path / "logs" / "voicecode.log"
    handlers = [
        h for h in root_logger.handlers
        if isinstance(h, logging.FileHandler) and Path(h.baseFilename) == path
    ]
    assert len(handlers) == 1
    assert handlers[0].level == logging.INFO
    assert handlers[0].formatter._fmt == LOG_FORMAT
    assert path.parent.is_dir()
