"""Fixed front-end parameters of the SenseVoice acoustic model."""

from __future__ import annotations

SAMPLE_RATE = 16000
FRAME_LENGTH = 400  # 25 ms
FRAME_SHIFT = 160  # 10 ms
N_FFT = 512
N_FFT_BINS = N_FFT // 2 + 1
N_MELS = 80
LOG_EPS = 1e-10

LFR_M = 7
LFR_N = 6
FEATURE_DIM = N_MELS * LFR_M  # 560

# Utterances shorter than this (100 ms at 16 kHz) produce no transcript.
MIN_SAMPLES = 1600
