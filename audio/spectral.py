"""
Spectral analysis: framing, Hamming window and a fixed-size radix-2 FFT.
The FFT is a plain Cooley-Tukey implementation (bit reversal, then log2(N)
butterfly stages over a precomputed twiddle table), vectorized across frames.
"""

from __future__ import annotations

import math

import numpy as np

from audio.constants import FRAME_LENGTH, FRAME_SHIFT, N_FFT, N_FFT_BINS


def frame_count(num_samples: int) -> int:
    """Number of 25 ms / 10 ms frames that fit in num_samples (0 when shorter than one frame)."""
    if num_samples < FRAME_LENGTH:
        return 0
    return (num_samples - FRAME_LENGTH) // FRAME_SHIFT + 1


def hamming_window(n: int) -> np.ndarray:
    """Symmetric Hamming window of length n."""
    if n <= 1:
        return np.ones(max(n, 0), dtype=np.float64)
    idx = np.arange(n, dtype=np.float64)
    return 0.54 - 0.46 * np.cos(2.0 * math.pi * idx / (n - 1))


def _bit_reversal_indices(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    out = np.zeros(n, dtype=np.int64)
    for i in range(n):
        r = 0
        v = i
        for _ in range(bits):
            r = (r << 1) | (v & 1)
            v >>= 1
        out[i] = r
    return out


class FFT512:
    """
    Radix-2 FFT of fixed size (512 by default) on real input.
    Twiddle factors cos/sin(-2*pi*k/N) for k in [0, N/2) are computed once.
    """

    def __init__(self, n: int = N_FFT) -> None:
        if n < 2 or n & (n - 1):
            raise ValueError(f"FFT size must be a power of two (got {n})")
        self.n = n
        angles = -2.0 * math.pi * np.arange(n // 2, dtype=np.float64) / n
        self.cos = np.cos(angles)
        self.sin = np.sin(angles)
        self._perm = _bit_reversal_indices(n)

    def transform(self, frames: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """
        FFT of each row of frames (shape [F, N] or [N], real).
        Returns (real, imag) with the same shape as the input.
        """
        x = np.asarray(frames, dtype=np.float64)
        squeeze = x.ndim == 1
        if squeeze:
            x = x[np.newaxis, :]
        if x.shape[-1] != self.n:
            raise ValueError(f"Expected frames of length {self.n}, got {x.shape[-1]}")
        f = x.shape[0]
        real = x[:, self._perm].copy()
        imag = np.zeros_like(real)

        length = 2
        while length <= self.n:
            half = length // 2
            step = self.n // length
            tw = np.arange(half) * step
            wr = self.cos[tw]
            wi = self.sin[tw]
            r = real.reshape(f, self.n // length, length)
            im = imag.reshape(f, self.n // length, length)
            even_r = r[:, :, :half].copy()
            even_i = im[:, :, :half].copy()
            odd_r = r[:, :, half:]
            odd_i = im[:, :, half:]
            tr = wr * odd_r - wi * odd_i
            ti = wr * odd_i + wi * odd_r
            r[:, :, :half] = even_r + tr
            im[:, :, :half] = even_i + ti
            r[:, :, half:] = even_r - tr
            im[:, :, half:] = even_i - ti
            length <<= 1

        if squeeze:
            return real[0], imag[0]
        return real, imag


def frame_signal(audio16k: np.ndarray, window: np.ndarray | None = None) -> np.ndarray:
    """
    Split audio into overlapping windowed frames, zero-padded to N_FFT.
    Returns float64 array of shape [T, N_FFT]; T may be 0.
    """
    x = np.asarray(audio16k, dtype=np.float64)
    t = frame_count(x.shape[0])
    out = np.zeros((t, N_FFT), dtype=np.float64)
    if t == 0:
        return out
    if window is None:
        window = hamming_window(FRAME_LENGTH)
    idx = np.arange(FRAME_LENGTH)[np.newaxis, :] + FRAME_SHIFT * np.arange(t)[:, np.newaxis]
    out[:, :FRAME_LENGTH] = x[idx] * window
    return out


def power_spectrum(
    audio16k: np.ndarray,
    fft: FFT512 | None = None,
    window: np.ndarray | None = None,
) -> np.ndarray:
    """Per-frame power spectrum, shape [T, 257]: real^2 + imag^2 of the first N/2+1 bins."""
    frames = frame_signal(audio16k, window)
    if frames.shape[0] == 0:
        return np.zeros((0, N_FFT_BINS), dtype=np.float64)
    fft = fft or FFT512()
    real, imag = fft.transform(frames)
    real = real[:, :N_FFT_BINS]
    imag = imag[:, :N_FFT_BINS]
    return real * real + imag * imag


__all__ = [
    "FFT512",
    "frame_count",
    "frame_signal",
    "hamming_window",
    "power_spectrum",
]
