"""
Tensor builder and ONNX Runtime adapter for the SenseVoice CTC model.

Request tensors (names and dtypes are fixed by the exported model):
    speech          float32 [1, T, 560]
    speech_lengths  int32   [1]
    language        int32   [1]
    textnorm        int32   [1]
Only the "ctc_logits" output ([1, T, V]) is consumed.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from audio.constants import FEATURE_DIM
from sdk.abstractions import EngineError

logger = logging.getLogger(__name__)

LOGITS_OUTPUT = "ctc_logits"
GPU_PROVIDER = "CUDAExecutionProvider"
CPU_PROVIDER = "CPUExecutionProvider"


def build_feeds(features: np.ndarray, language: int = 0, textnorm: int = 0) -> dict[str, np.ndarray]:
    """Build the named-tensor request from [T, 560] (or flat T*560) normalized features."""
    x = np.asarray(features, dtype=np.float32)
    t = x.size // FEATURE_DIM
    speech = np.ascontiguousarray(x.reshape(1, t, FEATURE_DIM))
    return {
        "speech": speech,
        "speech_lengths": np.array([t], dtype=np.int32),
        "language": np.array([int(language)], dtype=np.int32),
        "textnorm": np.array([int(textnorm)], dtype=np.int32),
    }


def preferred_providers(prefer_gpu: bool, available: list[str] | None = None) -> list[str]:
    """Provider order to try first: GPU (when requested and present) then CPU."""
    if available is None:
        import onnxruntime as ort

        available = list(ort.get_available_providers())
    providers = []
    if prefer_gpu and GPU_PROVIDER in available:
        providers.append(GPU_PROVIDER)
    providers.append(CPU_PROVIDER)
    return providers


class OnnxInference:
    """
    Owns one onnxruntime.InferenceSession built from in-memory model bytes.
    Sessions are not re-entrant; callers serialize run().
    """

    def __init__(
        self,
        model_bytes: bytes,
        prefer_gpu: bool = False,
        intra_op_num_threads: int = 1,
    ) -> None:
        self._model_bytes = model_bytes
        self._intra_op_num_threads = intra_op_num_threads
        self._providers = preferred_providers(prefer_gpu)
        self._session: Any = None
        self._create()

    @property
    def providers(self) -> list[str]:
        return list(self._providers)

    @property
    def on_fallback(self) -> bool:
        return self._providers == [CPU_PROVIDER]

    def _new_session(self, providers: list[str]) -> Any:
        import onnxruntime as ort

        options = ort.SessionOptions()
        if self._intra_op_num_threads > 0:
            options.intra_op_num_threads = self._intra_op_num_threads
        return ort.InferenceSession(self._model_bytes, sess_options=options, providers=providers)

    def _create(self) -> None:
        try:
            self._session = self._new_session(self._providers)
            logger.info("Inference session created (providers=%s)", self._providers)
            return
        except Exception as e:
            logger.warning(
                "Inference session on %s failed (%s); retrying on CPU", self._providers, e
            )
        self._fall_back_to_cpu()

    def _fall_back_to_cpu(self) -> None:
        self._providers = [CPU_PROVIDER]
        try:
            self._session = self._new_session(self._providers)
        except Exception as e:
            raise EngineError(f"Failed to create inference session on CPU: {e}") from e
        logger.info("Inference session created (providers=%s)", self._providers)

    def _run_once(self, feeds: dict[str, np.ndarray]) -> np.ndarray | None:
        names = [o.name for o in self._session.get_outputs()]
        outputs = self._session.run(None, feeds)
        by_name = dict(zip(names, outputs))
        logits = by_name.get(LOGITS_OUTPUT)
        if logits is None:
            logger.warning("Model returned no %s output (outputs: %s)", LOGITS_OUTPUT, names)
            return None
        return np.asarray(logits)

    def run(self, feeds: dict[str, np.ndarray]) -> np.ndarray | None:
        """
        Run the model; return ctc_logits or None. A failure rebuilds the session
        on CPU and retries once before raising EngineError.
        """
        try:
            return self._run_once(feeds)
        except Exception as e:
            logger.warning("Inference on %s failed (%s); retrying on CPU", self._providers, e)
        self._fall_back_to_cpu()
        try:
            return self._run_once(feeds)
        except Exception as e:
            raise EngineError(f"Inference failed on CPU: {e}") from e


__all__ = [
    "CPU_PROVIDER",
    "GPU_PROVIDER",
    "LOGITS_OUTPUT",
    "OnnxInference",
    "build_feeds",
    "preferred_providers",
]
