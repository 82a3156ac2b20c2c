"""
Mel filterbank and 80-dim log-mel (Fbank) features.
"""

from __future__ import annotations

import math

import numpy as np

from audio.constants import FRAME_LENGTH, LOG_EPS, N_FFT, N_MELS, SAMPLE_RATE
from audio.spectral import FFT512, hamming_window, power_spectrum


def hz_to_mel(hz: float) -> float:
    return 2595.0 * math.log10(1.0 + hz / 700.0)


def mel_to_hz(mel: float) -> float:
    return 700.0 * (10.0 ** (mel / 2595.0) - 1.0)


def create_mel_filterbank(
    sample_rate: int = SAMPLE_RATE,
    n_fft: int = N_FFT,
    n_mels: int = N_MELS,
    f_min: float = 0.0,
    f_max: float | None = None,
) -> np.ndarray:
    """
    Triangular mel filters, shape [n_mels, n_fft // 2 + 1].

    n_mels + 2 points equally spaced on the mel scale between f_min and f_max
    are mapped to FFT bins via floor((n_fft + 1) * hz / sample_rate). Filter m
    rises from bin[m] to bin[m + 1] and falls to bin[m + 2].
    """
    if f_max is None:
        f_max = sample_rate / 2
    n_bins = n_fft // 2 + 1
    mel_min = hz_to_mel(f_min)
    mel_max = hz_to_mel(f_max)
    bins = []
    for i in range(n_mels + 2):
        mel = mel_min + (mel_max - mel_min) * i / (n_mels + 1)
        bins.append(int(math.floor((n_fft + 1) * mel_to_hz(mel) / sample_rate)))

    filters = np.zeros((n_mels, n_bins), dtype=np.float64)
    for m in range(n_mels):
        left, center, right = bins[m], bins[m + 1], bins[m + 2]
        rise = max(1, center - left)
        fall = max(1, right - center)
        for k in range(left, center):
            if 0 <= k < n_bins:
                filters[m, k] = (k - left) / rise
        for k in range(center, right):
            if 0 <= k < n_bins:
                filters[m, k] = (right - k) / fall
    return filters


class FbankExtractor:
    """
    Computes [T, 80] log-mel features from 16 kHz audio.
    Window, FFT tables and filterbank are built once per instance.
    """

    def __init__(self) -> None:
        self._window = hamming_window(FRAME_LENGTH)
        self._fft = FFT512(N_FFT)
        self._filters = create_mel_filterbank(SAMPLE_RATE, N_FFT, N_MELS, 0.0, SAMPLE_RATE / 2)

    @property
    def filters(self) -> np.ndarray:
        return self._filters

    def compute(self, audio16k: np.ndarray) -> np.ndarray:
        power = power_spectrum(audio16k, self._fft, self._window)
        if power.shape[0] == 0:
            return np.zeros((0, N_MELS), dtype=np.float32)
        energies = power @ self._filters.T
        return np.log(np.maximum(energies, LOG_EPS)).astype(np.float32)


def compute_fbank(audio16k: np.ndarray) -> np.ndarray:
    """Log-mel features [T, 80] with a freshly built extractor."""
    return FbankExtractor().compute(audio16k)


__all__ = [
    "FbankExtractor",
    "compute_fbank",
    "create_mel_filterbank",
    "hz_to_mel",
    "mel_to_hz",
]
