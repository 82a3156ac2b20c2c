"""Tests for audio.spectral: frame_count, hamming_window, FFT512, power_spectrum."""

from __future__ import annotations

import numpy as np
import pytest

from audio.constants import FRAME_LENGTH, N_FFT, N_FFT_BINS
from audio.spectral import FFT512, frame_count, frame_signal, hamming_window, power_spectrum


# ---- frame_count ----
def test_frame_count_exactly_one_frame() -> None:
    assert frame_count(400) == 1


def test_frame_count_shorter_than_frame_is_zero() -> None:
    assert frame_count(399) == 0
    assert frame_count(0) == 0


def test_frame_count_stride() -> None:
    assert frame_count(559) == 1
    assert frame_count(560) == 2
    assert frame_count(16000) == 98


# ---- hamming_window ----
def test_hamming_window_endpoints_and_peak() -> None:
    w = hamming_window(FRAME_LENGTH)
    assert w.shape == (400,)
    assert w[0] == pytest.approx(0.08)
    assert w[-1] == pytest.approx(0.08)
    assert w.max() == pytest.approx(1.0, abs=1e-4)
    np.testing.assert_allclose(w, w[::-1])


# ---- FFT512 ----
def test_fft_matches_reference_dft() -> None:
    rng = np.random.default_rng(0)
    x = rng.standard_normal((3, N_FFT))
    real, imag = FFT512().transform(x)
    ref = np.fft.fft(x, axis=-1)
    np.testing.assert_allclose(real, ref.real, atol=1e-9)
    np.testing.assert_allclose(imag, ref.imag, atol=1e-9)


def test_fft_single_frame_impulse_is_flat() -> None:
    x = np.zeros(N_FFT)
    x[0] = 1.0
    real, imag = FFT512().transform(x)
    assert real.shape == (N_FFT,)
    np.testing.assert_allclose(real, np.ones(N_FFT))
    np.testing.assert_allclose(imag, np.zeros(N_FFT), atol=1e-12)


def test_fft_twiddle_table_angles() -> None:
    fft = FFT512()
    assert fft.cos.shape == (N_FFT // 2,)
    assert fft.cos[0] == pytest.approx(1.0)
    assert fft.sin[N_FFT // 4] == pytest.approx(-1.0)


def test_fft_rejects_wrong_length_and_size() -> None:
    with pytest.raises(ValueError):
        FFT512().transform(np.zeros(100))
    with pytest.raises(ValueError):
        FFT512(500)


# ---- power_spectrum ----
def test_frame_signal_zero_pads_to_fft_size() -> None:
    frames = frame_signal(np.ones(560, dtype=np.float32))
    assert frames.shape == (2, N_FFT)
    assert np.all(frames[:, FRAME_LENGTH:] == 0.0)


def test_power_spectrum_shape_and_non_negative() -> None:
    audio = np.random.default_rng(1).standard_normal(1600).astype(np.float32)
    p = power_spectrum(audio)
    assert p.shape == (frame_count(1600), N_FFT_BINS)
    assert np.all(p >= 0.0)


def test_power_spectrum_empty_when_too_short() -> None:
    p = power_spectrum(np.zeros(399, dtype=np.float32))
    assert p.shape == (0, N_FFT_BINS)


def test_power_spectrum_tone_peaks_at_expected_bin() -> None:
    # 1 kHz at 16 kHz with N=512 lands on bin 32.
    t = np.arange(400) / 16000.0
    audio = np.sin(2 * np.pi * 1000.0 * t).astype(np.float32)
    p = power_spectrum(audio)
    assert int(np.argmax(p[0])) == 32
