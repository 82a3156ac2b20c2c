"""
SenseVoice processor: the in-process unit that turns one waveform into text.

Owns the token vocabulary, CMVN stats and the inference session for one
execution context. Not thread-safe; the coordinator serializes calls.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import numpy as np

from audio.cmvn import CmvnStats, apply_cmvn, parse_mvn_text
from audio.constants import FEATURE_DIM, LFR_M, LFR_N, MIN_SAMPLES
from audio.lfr import apply_lfr
from audio.mel import FbankExtractor
from sdk.abstractions import EngineError
from sdk.audio_utils import TARGET_SAMPLE_RATE, resample_linear
from stt.cleaner import clean_transcript
from stt.ctc import BLANK_ID, decode_ctc_greedy
from stt.inference import OnnxInference, build_feeds
from stt.resources import ResourceLoader
from stt.tokens import TokenVocabulary

logger = logging.getLogger(__name__)


class SenseVoiceProcessor:
    """
    Feature extraction, inference and decoding for SenseVoiceSmall.
    Call init() once (idempotent), then transcribe() per utterance.
    """

    def __init__(
        self,
        loader: ResourceLoader,
        model_file: str = "model_quant.onnx",
        tokens_file: str = "tokens.json",
        mvn_file: str = "am.mvn",
        prefer_gpu: bool = False,
        intra_op_num_threads: int = 1,
        session_factory: Callable[..., Any] = OnnxInference,
    ) -> None:
        self._loader = loader
        self._model_file = model_file
        self._tokens_file = tokens_file
        self._mvn_file = mvn_file
        self._prefer_gpu = prefer_gpu
        self._intra_op_num_threads = intra_op_num_threads
        self._session_factory = session_factory
        self._fbank = FbankExtractor()

        self.session: Any = None
        self.tokens: TokenVocabulary | None = None
        self.cmvn: CmvnStats | None = None
        self.is_ready = False

    @classmethod
    def from_settings(cls, settings: dict) -> SenseVoiceProcessor:
        """Build from a normalized sensevoice section (sdk.get_sensevoice_section)."""
        loader = ResourceLoader(
            settings["base_url"],
            cache_dir=settings.get("cache_dir"),
            timeout_sec=float(settings.get("fetch_timeout_sec", 120.0)),
        )
        return cls(
            loader,
            model_file=settings.get("model_file", "model_quant.onnx"),
            tokens_file=settings.get("tokens_file", "tokens.json"),
            mvn_file=settings.get("mvn_file", "am.mvn"),
            prefer_gpu=bool(settings.get("prefer_gpu", False)),
            intra_op_num_threads=int(settings.get("intra_op_num_threads", 1)),
        )

    def init(self) -> None:
        if self.is_ready:
            return
        tokens_value, tokens_source = self._loader.load_json(self._tokens_file)
        mvn_text, mvn_source = self._loader.load_text(self._mvn_file)
        tokens = TokenVocabulary.from_json_value(tokens_value)
        cmvn = parse_mvn_text(mvn_text)
        logger.info(
            "Loaded %d tokens (%s) and CMVN stats (%s)", len(tokens), tokens_source, mvn_source
        )

        model_bytes, model_source = self._loader.load_model_bytes(self._model_file)
        try:
            session = self._session_factory(
                model_bytes,
                prefer_gpu=self._prefer_gpu,
                intra_op_num_threads=self._intra_op_num_threads,
            )
        except EngineError as e:
            if model_source == "cache":
                self._loader.evict(self._model_file)
                raise EngineError(
                    "Failed to initialize model from cached bytes; the cached copy was "
                    f"removed and will be fetched again on the next init. Original error: {e}"
                ) from e
            raise
        logger.info("SenseVoice model ready (%d bytes, %s)", len(model_bytes), model_source)

        self.tokens = tokens
        self.cmvn = cmvn
        self.session = session
        self.is_ready = True

    def extract_features(self, audio16k: np.ndarray) -> np.ndarray:
        """Fbank -> LFR -> CMVN; returns normalized [T, 560] features."""
        feats80 = self._fbank.compute(audio16k)
        stacked = apply_lfr(feats80, LFR_M, LFR_N)
        return apply_cmvn(stacked, self.cmvn)

    def transcribe(
        self,
        audio: np.ndarray,
        sample_rate: int,
        language: int = 0,
        textnorm: int = 0,
    ) -> str:
        if not self.is_ready:
            self.init()

        audio16k = resample_linear(np.asarray(audio, dtype=np.float32), sample_rate, TARGET_SAMPLE_RATE)
        if audio16k.shape[0] < MIN_SAMPLES:
            logger.debug("Utterance too short (%d samples at 16 kHz); skipping", audio16k.shape[0])
            return ""

        # Feature extraction is heavy; give other threads one scheduling tick first.
        time.sleep(0)
        norm = self.extract_features(audio16k)
        t = norm.size // FEATURE_DIM
        if t <= 0:
            return ""

        logits = self.session.run(build_feeds(norm, language, textnorm))
        if logits is None:
            return ""
        decoded = decode_ctc_greedy(logits, self.tokens, BLANK_ID)
        text = clean_transcript(decoded)
        logger.debug("Decoded %d frames -> %r", t, text)
        return text


__all__ = ["SenseVoiceProcessor"]
