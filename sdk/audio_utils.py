"""
Shared audio utilities: int16 PCM conversion and linear resampling to 16 kHz.
Used by the SenseVoice processor, the STT engine adapter and the CLI.
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

INT16_MAX = 32767
TARGET_SAMPLE_RATE = 16000


def pcm16_to_float32(audio_bytes: bytes) -> np.ndarray:
    """
    Convert int16 little-endian mono PCM to float32 in [-1, 1).
    A trailing odd byte is ignored.
    """
    n = len(audio_bytes) // 2
    if n == 0:
        return np.zeros(0, dtype=np.float32)
    samples = np.frombuffer(audio_bytes[: n * 2], dtype="<i2")
    return samples.astype(np.float32) / 32768.0


def resample_linear(
    samples: np.ndarray, rate_in: int, rate_out: int = TARGET_SAMPLE_RATE
) -> np.ndarray:
    """
    Resample a mono waveform from rate_in to rate_out by linear interpolation.

    Returns the input object unchanged when the rates match. Otherwise the output
    has max(1, floor(n * rate_out / rate_in)) samples; output i reads the input at
    fractional position i * rate_in / rate_out, blending the two nearest samples
    with the upper index clamped to the last sample. Empty input yields a single
    zero sample.
    """
    if rate_in <= 0 or rate_out <= 0:
        raise ValueError(f"Sample rates must be positive (got {rate_in} -> {rate_out})")
    if rate_in == rate_out:
        return samples
    x = np.asarray(samples, dtype=np.float32)
    n = x.shape[0]
    ratio = rate_out / rate_in
    num_out = max(1, int(np.floor(n * ratio)))
    if n == 0:
        logger.debug("resample_linear: empty input, returning one silent sample")
        return np.zeros(num_out, dtype=np.float32)
    src = np.arange(num_out, dtype=np.float64) / ratio
    i0 = np.floor(src).astype(np.int64)
    i0 = np.minimum(i0, n - 1)
    i1 = np.minimum(i0 + 1, n - 1)
    t = src - i0
    x64 = x.astype(np.float64)
    out = x64[i0] * (1.0 - t) + x64[i1] * t
    return out.astype(np.float32)


__all__ = ["INT16_MAX", "TARGET_SAMPLE_RATE", "pcm16_to_float32", "resample_linear"]
