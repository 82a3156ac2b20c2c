"""
Pipeline coordinator: owns pipeline state and serializes transcription requests.

Every init and transcribe runs on one single-thread queue, so at most one run
touches the inference session at a time and requests settle in submission
order. Each caller gets its own Future and its own result or exception.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable

import numpy as np

from app.execution import ExecutionContext, InProcessContext, IsolatedContext
from sdk.abstractions import ContextError
from sdk.logging import get_logger
from stt.sensevoice_processor import SenseVoiceProcessor

logger = get_logger("coordinator")

StatusCallback = Callable[[str], None]

STATUS_LOADING = "Loading model"
STATUS_TRANSCRIBING = "Transcribing..."


class PipelineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


def _notify(on_status: StatusCallback | None, message: str) -> None:
    if on_status is None:
        return
    try:
        on_status(message)
    except Exception as e:
        logger.debug("Status callback failed: %s", e)


class PipelineCoordinator:
    """
    Long-lived owner of one execution context (and through it the vocabulary,
    CMVN stats and inference session).

    Prefers an isolated worker process; downgrades once, permanently, to an
    in-process context when the worker cannot start or stops responding.
    """

    def __init__(
        self,
        settings: dict,
        use_worker: bool | None = None,
        isolated_factory: Callable[[], ExecutionContext] | None = None,
        in_process_factory: Callable[[], ExecutionContext] | None = None,
    ) -> None:
        self._settings = dict(settings)
        self._use_worker = (
            bool(self._settings.get("use_worker", True)) if use_worker is None else use_worker
        )
        self._isolated_factory = isolated_factory or self._default_isolated
        self._in_process_factory = in_process_factory or self._default_in_process

        self._state = PipelineState.UNINITIALIZED
        self._state_lock = threading.Lock()
        self._init_error: Exception | None = None
        self._context: ExecutionContext | None = None
        self._downgraded = False
        self._queue: ThreadPoolExecutor | None = None
        self._queue_lock = threading.Lock()

    def _submit(self, fn: Callable[..., object], *args: object) -> Future:
        # The queue is created on first use and again after close().
        with self._queue_lock:
            if self._queue is None:
                self._queue = ThreadPoolExecutor(max_workers=1, thread_name_prefix="voicecode-pipeline")
            return self._queue.submit(fn, *args)

    def _default_isolated(self) -> ExecutionContext:
        return IsolatedContext(
            self._settings,
            init_timeout_sec=float(self._settings.get("worker_init_timeout_sec", 45.0)),
            call_timeout_sec=float(self._settings.get("worker_call_timeout_sec", 60.0)),
        )

    def _default_in_process(self) -> ExecutionContext:
        return InProcessContext(SenseVoiceProcessor.from_settings(self._settings))

    @property
    def state(self) -> PipelineState:
        with self._state_lock:
            return self._state

    @property
    def context_name(self) -> str | None:
        ctx = self._context
        return ctx.name if ctx is not None else None

    def _set_state(self, state: PipelineState) -> None:
        with self._state_lock:
            if self._state is not state:
                logger.debug("Pipeline state %s -> %s", self._state.value, state.value)
            self._state = state

    # ---- public API ----

    def init(self, on_status: StatusCallback | None = None) -> None:
        """Initialize (or re-initialize after a failure). Blocks; no-op once ready."""
        self._submit(self._init_job, on_status, True).result()

    def submit(
        self,
        audio: np.ndarray,
        sample_rate: int,
        language: int = 0,
        textnorm: int = 0,
        on_status: StatusCallback | None = None,
    ) -> Future:
        """Queue one transcription; the Future resolves to text or raises the run's error."""
        if np.ndim(audio) > 1:
            raise ValueError(f"Expected a mono waveform, got shape {np.shape(audio)}")
        waveform = np.array(audio, dtype=np.float32, copy=True).reshape(-1)
        return self._submit(
            self._transcribe_job, waveform, int(sample_rate), int(language), int(textnorm), on_status
        )

    def transcribe(
        self,
        audio: np.ndarray,
        sample_rate: int,
        language: int = 0,
        textnorm: int = 0,
        on_status: StatusCallback | None = None,
    ) -> str:
        return self.submit(audio, sample_rate, language, textnorm, on_status).result()

    def close(self) -> None:
        """Drain the queue and release the execution context. A later init() or submit() starts over."""
        with self._queue_lock:
            queue = self._queue
            self._queue = None
        if queue is not None:
            queue.shutdown(wait=True)
        ctx = self._context
        self._context = None
        if ctx is not None:
            try:
                ctx.close()
            except Exception as e:
                logger.warning("Closing %s context failed: %s", ctx.name, e)
        self._set_state(PipelineState.UNINITIALIZED)

    # ---- queue jobs (run on the single pipeline thread) ----

    def _init_job(self, on_status: StatusCallback | None, explicit: bool) -> None:
        state = self.state
        if state is PipelineState.READY:
            return
        if state is PipelineState.FAILED and not explicit and self._init_error is not None:
            raise type(self._init_error)(str(self._init_error)) from self._init_error
        self._set_state(PipelineState.INITIALIZING)
        _notify(on_status, STATUS_LOADING)
        try:
            self._context = self._create_context()
        except Exception as e:
            self._init_error = e
            self._set_state(PipelineState.FAILED)
            logger.error("Pipeline init failed: %s", e)
            raise
        self._init_error = None
        self._set_state(PipelineState.READY)
        logger.info("Pipeline ready (%s context)", self._context.name)

    def _create_context(self) -> ExecutionContext:
        if self._use_worker and not self._downgraded:
            ctx: ExecutionContext | None = None
            try:
                ctx = self._isolated_factory()
                ctx.init()
                return ctx
            except Exception as e:
                logger.warning("Worker init failed; falling back to in-process: %s", e)
                self._downgraded = True
                if ctx is not None:
                    self._close_quietly(ctx)
        ctx = self._in_process_factory()
        ctx.init()
        return ctx

    def _close_quietly(self, ctx: ExecutionContext) -> None:
        try:
            ctx.close()
        except Exception as e:
            logger.debug("Closing %s context failed: %s", ctx.name, e)

    def _downgrade(self, failed: ExecutionContext) -> ExecutionContext:
        self._close_quietly(failed)
        self._downgraded = True
        self._context = None
        self._set_state(PipelineState.INITIALIZING)
        try:
            ctx = self._in_process_factory()
            ctx.init()
        except Exception as e:
            self._init_error = e
            self._set_state(PipelineState.FAILED)
            logger.error("In-process fallback init failed: %s", e)
            raise
        self._context = ctx
        self._set_state(PipelineState.READY)
        return ctx

    def _transcribe_job(
        self,
        audio: np.ndarray,
        sample_rate: int,
        language: int,
        textnorm: int,
        on_status: StatusCallback | None,
    ) -> str:
        if self.state is not PipelineState.READY:
            self._init_job(on_status, False)
        _notify(on_status, STATUS_TRANSCRIBING)
        ctx = self._context
        try:
            return ctx.transcribe(audio, sample_rate, language, textnorm)
        except ContextError as e:
            if not ctx.isolated:
                raise
            logger.warning("Worker transcribe failed; falling back to in-process: %s", e)
        ctx = self._downgrade(ctx)
        return ctx.transcribe(audio, sample_rate, language, textnorm)


__all__ = [
    "STATUS_LOADING",
    "STATUS_TRANSCRIBING",
    "PipelineCoordinator",
    "PipelineState",
]
