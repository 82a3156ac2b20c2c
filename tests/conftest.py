"""
Shared fixtures: synthetic am.mvn text, token lists, a fake resource loader and a
fake inference session so no test needs the real model.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np
import pytest

from audio.constants import FEATURE_DIM


def make_mvn_text(shift_len: int = FEATURE_DIM, scale_len: int = FEATURE_DIM) -> str:
    shift = " ".join(["-1.5"] * shift_len)
    scale = " ".join(["0.25"] * scale_len)
    return (
        "<Nnet>\n"
        f"<Splice> {FEATURE_DIM} {FEATURE_DIM}\n[ 0 ]\n"
        f"<AddShift> {FEATURE_DIM} {FEATURE_DIM}\n"
        f"<LearnRateCoef> 0 [ {shift} ]\n"
        f"<Rescale> {FEATURE_DIM} {FEATURE_DIM}\n"
        f"<LearnRateCoef> 0 [ {scale} ]\n"
        "</Nnet>\n"
    )


TOKENS = ["<blank>", "<s>", "</s>", "<unk>", "▁he", "llo", "▁world", "<|en|>"]


def tone(seconds: float = 1.0, rate: int = 16000, freq: float = 440.0) -> np.ndarray:
    n = int(seconds * rate)
    t = np.arange(n, dtype=np.float64) / rate
    return (0.3 * np.sin(2.0 * math.pi * freq * t)).astype(np.float32)


class FakeLoader:
    """Stands in for ResourceLoader; records evictions."""

    def __init__(
        self,
        tokens: Any = None,
        mvn_text: str | None = None,
        model_bytes: bytes = b"\x08" * 1024,
        model_source: str = "network",
        error: Exception | None = None,
    ) -> None:
        self.tokens = list(TOKENS) if tokens is None else tokens
        self.mvn_text = make_mvn_text() if mvn_text is None else mvn_text
        self.model_bytes = model_bytes
        self.model_source = model_source
        self.error = error
        self.evicted: list[str] = []
        self.model_loads = 0

    def load_json(self, name: str):
        if self.error is not None:
            raise self.error
        return self.tokens, "network"

    def load_text(self, name: str):
        if self.error is not None:
            raise self.error
        return self.mvn_text, "network"

    def load_model_bytes(self, name: str):
        self.model_loads += 1
        return self.model_bytes, self.model_source

    def evict(self, name: str) -> None:
        self.evicted.append(name)


class FakeSession:
    """
    Deterministic stand-in for OnnxInference: emits "▁he llo ▁world <|en|>"
    spread over the T input frames, with blanks in between.
    """

    def __init__(self, model_bytes: bytes = b"", prefer_gpu: bool = False, intra_op_num_threads: int = 1) -> None:
        self.model_bytes = model_bytes
        self.calls: list[dict] = []

    def run(self, feeds: dict) -> np.ndarray:
        self.calls.append(feeds)
        t = int(feeds["speech_lengths"][0])
        logits = np.zeros((1, t, len(TOKENS)), dtype=np.float32)
        logits[0, :, 0] = 1.0
        pattern = [4, 4, 0, 5, 0, 6, 7]
        for i in range(min(t, len(pattern))):
            logits[0, i, :] = 0.0
            logits[0, i, pattern[i]] = 1.0
        return logits


@pytest.fixture
def mvn_text() -> str:
    return make_mvn_text()


@pytest.fixture
def fake_loader() -> FakeLoader:
    return FakeLoader()
