"""
Core speech abstractions: the STT engine interface, its no-op implementation,
and the pipeline error taxonomy shared by every stage.
Concrete engines live in stt; the coordinator lives in app.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class PipelineError(Exception):
    """Base class for errors raised by the transcription pipeline."""


class ResourceError(PipelineError):
    """Raised when the model, token list or CMVN stats cannot be fetched or validated."""


class ParseError(ResourceError):
    """Raised when a token list or MVN stats resource is malformed."""


class EngineError(PipelineError):
    """Raised when the inference session cannot be created or run, even on the CPU fallback."""


class ShapeError(PipelineError):
    """Raised when the logits tensor is not shaped [1, T, V]."""


class ContextError(PipelineError):
    """Raised when an isolated execution context times out or dies."""


class STTEngine(ABC):
    """Interface for local speech-to-text. Implementations: SenseVoice."""

    @abstractmethod
    def transcribe(self, audio_bytes: bytes) -> str:
        """
        Transcribe raw audio (int16 mono PCM) to text.
        Returns empty string if nothing recognized.
        """
        ...

    def start(self) -> None:
        """Optional: load model / warmup. No-op by default."""
        pass

    def stop(self) -> None:
        """Optional: release model. No-op by default."""
        pass


class NoOpSTTEngine(STTEngine):
    """STT that always returns empty string."""

    def transcribe(self, audio_bytes: bytes) -> str:
        return ""


__all__ = [
    "ContextError",
    "EngineError",
    "NoOpSTTEngine",
    "ParseError",
    "PipelineError",
    "ResourceError",
    "ShapeError",
    "STTEngine",
]
