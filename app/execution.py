"""
Execution contexts for the transcription pipeline.

IsolatedContext runs the processor in a dedicated worker process so heavy
numeric work stays off the caller's threads; every exchange with it is bounded
by a timeout. InProcessContext runs the processor on the calling thread and is
the fallback when the worker cannot be created or stops responding.
"""

from __future__ import annotations

import logging
import multiprocessing
from abc import ABC, abstractmethod
from concurrent.futures import BrokenExecutor, Executor, ProcessPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable

import numpy as np

from app.worker import init_worker, transcribe_in_worker
from sdk.abstractions import ContextError
from stt.sensevoice_processor import SenseVoiceProcessor

logger = logging.getLogger(__name__)

DEFAULT_INIT_TIMEOUT_SEC = 45.0
DEFAULT_CALL_TIMEOUT_SEC = 60.0


class ExecutionContext(ABC):
    """Where a pipeline run executes. One context per coordinator at a time."""

    name = "context"
    isolated = False

    @abstractmethod
    def init(self) -> None:
        """Load resources and create the inference session. Idempotent."""
        ...

    @abstractmethod
    def transcribe(
        self, audio: np.ndarray, sample_rate: int, language: int = 0, textnorm: int = 0
    ) -> str:
        ...

    def close(self) -> None:
        """Release the context. No-op by default."""
        pass


class InProcessContext(ExecutionContext):
    """Runs the processor on the caller's thread."""

    name = "in-process"

    def __init__(self, processor: SenseVoiceProcessor) -> None:
        self._processor = processor

    def init(self) -> None:
        self._processor.init()

    def transcribe(
        self, audio: np.ndarray, sample_rate: int, language: int = 0, textnorm: int = 0
    ) -> str:
        return self._processor.transcribe(audio, sample_rate, language=language, textnorm=textnorm)


def _spawn_executor() -> Executor:
    return ProcessPoolExecutor(max_workers=1, mp_context=multiprocessing.get_context("spawn"))


class IsolatedContext(ExecutionContext):
    """
    Runs the processor in a single worker process.

    A request that does not answer within its timeout, or a worker that dies,
    discards the process and raises ContextError; the context is unusable
    afterwards. Errors raised by the pipeline inside the worker propagate as-is.
    """

    name = "isolated"
    isolated = True

    def __init__(
        self,
        settings: dict,
        init_timeout_sec: float = DEFAULT_INIT_TIMEOUT_SEC,
        call_timeout_sec: float = DEFAULT_CALL_TIMEOUT_SEC,
        executor_factory: Callable[[], Executor] = _spawn_executor,
    ) -> None:
        self._settings = dict(settings)
        self._init_timeout = init_timeout_sec
        self._call_timeout = call_timeout_sec
        try:
            self._executor: Executor | None = executor_factory()
        except Exception as e:
            raise ContextError(f"Failed to create worker: {e}") from e

    @property
    def alive(self) -> bool:
        return self._executor is not None

    def _discard(self) -> None:
        executor = self._executor
        self._executor = None
        if executor is None:
            return
        # ProcessPoolExecutor has no public way to kill a hung worker.
        processes = getattr(executor, "_processes", None) or {}
        for proc in list(processes.values()):
            try:
                proc.terminate()
            except Exception as e:
                logger.debug("Failed to terminate worker process: %s", e)
        try:
            executor.shutdown(wait=False, cancel_futures=True)
        except Exception as e:
            logger.debug("Worker shutdown failed: %s", e)

    def _call(self, timeout: float, fn: Callable[..., Any], *args: Any) -> Any:
        if self._executor is None:
            raise ContextError("Worker context was discarded")
        try:
            future = self._executor.submit(fn, *args)
        except (BrokenExecutor, RuntimeError) as e:
            self._discard()
            raise ContextError(f"Worker unavailable: {e}") from e
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError as e:
            future.cancel()
            self._discard()
            raise ContextError(f"Worker response timeout after {timeout:.0f}s") from e
        except BrokenExecutor as e:
            self._discard()
            raise ContextError(f"Worker process died: {e}") from e

    def init(self) -> None:
        self._call(
            self._init_timeout, init_worker, self._settings, logging.getLogger().getEffectiveLevel()
        )

    def transcribe(
        self, audio: np.ndarray, sample_rate: int, language: int = 0, textnorm: int = 0
    ) -> str:
        return self._call(
            self._call_timeout, transcribe_in_worker, audio, sample_rate, language, textnorm
        )

    def close(self) -> None:
        executor = self._executor
        self._executor = None
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)


__all__ = [
    "DEFAULT_CALL_TIMEOUT_SEC",
    "DEFAULT_INIT_TIMEOUT_SEC",
    "ExecutionContext",
    "InProcessContext",
    "IsolatedContext",
]
