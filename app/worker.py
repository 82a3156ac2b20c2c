"""
Entry points executed inside the isolated worker process.

The worker keeps one SenseVoiceProcessor for its lifetime; the parent sends
init and transcribe requests through a single-process executor.
"""

from __future__ import annotations

import logging

import numpy as np

from sdk.abstractions import ContextError
from sdk.logging import configure_logging, get_logger
from stt.sensevoice_processor import SenseVoiceProcessor

logger = get_logger("worker")

_processor: SenseVoiceProcessor | None = None


def init_worker(settings: dict, log_level: int = logging.INFO) -> bool:
    """Create (once) and initialize the worker's processor. Returns True when ready."""
    global _processor
    configure_logging(log_level)
    if _processor is None:
        _processor = SenseVoiceProcessor.from_settings(settings)
    _processor.init()
    logger.info("Worker processor ready")
    return True


def transcribe_in_worker(
    audio: np.ndarray, sample_rate: int, language: int = 0, textnorm: int = 0
) -> str:
    if _processor is None or not _processor.is_ready:
        raise ContextError("Worker processor is not initialized")
    return _processor.transcribe(audio, sample_rate, language=language, textnorm=textnorm)


__all__ = ["init_worker", "transcribe_in_worker"]
