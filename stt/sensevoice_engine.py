"""
SenseVoice-based STT engine over the pipeline coordinator.
Expects mono int16 PCM at the configured sample rate (sensevoice.sample_rate).
"""
from __future__ import annotations

import logging

from app.coordinator import PipelineCoordinator
from sdk.abstractions import STTEngine
from sdk.audio_utils import pcm16_to_float32

logger = logging.getLogger(__name__)


class SenseVoiceEngine(STTEngine):
    """
    Transcribe int16 PCM chunks with SenseVoiceSmall.
    Model is loaded in start(); a failed load disables the engine until the next start().
    """

    def __init__(self, settings: dict, coordinator: PipelineCoordinator | None = None) -> None:
        self._settings = dict(settings)
        self._sample_rate = int(self._settings.get("sample_rate", 16000))
        self._language = int(self._settings.get("language", 0))
        self._textnorm = int(self._settings.get("textnorm", 0))
        self._coordinator = coordinator
        self._ready = False
        self._logged_not_ready = False

    def start(self) -> None:
        if self._ready:
            return
        if self._coordinator is None:
            self._coordinator = PipelineCoordinator(self._settings)
        try:
            self._coordinator.init()
            self._ready = True
            self._logged_not_ready = False
            logger.info("SenseVoice engine started (%s context)", self._coordinator.context_name)
        except Exception as e:
            logger.warning("Failed to load SenseVoice model: %s. STT disabled.", e)
            self._ready = False

    def stop(self) -> None:
        if self._coordinator is not None:
            self._coordinator.close()
            self._coordinator = None
        self._ready = False
        self._logged_not_ready = False

    def transcribe(self, audio_bytes: bytes) -> str:
        if not audio_bytes:
            return ""
        if not self._ready or self._coordinator is None:
            if not self._logged_not_ready:
                logger.warning(
                    "SenseVoice model not loaded; STT disabled. Check startup log for 'Failed to load SenseVoice model'."
                )
                self._logged_not_ready = True
            return ""
        try:
            audio = pcm16_to_float32(audio_bytes)
            return self._coordinator.transcribe(
                audio, self._sample_rate, language=self._language, textnorm=self._textnorm
            )
        except Exception as e:
            logger.warning("SenseVoice transcribe error: %s", e)
            return ""


__all__ = ["SenseVoiceEngine"]
