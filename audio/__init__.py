"""
Acoustic front end: Fbank (Hamming window, radix-2 FFT, mel filterbank), LFR stacking, CMVN.
"""

from __future__ import annotations

from audio.cmvn import CmvnStats, apply_cmvn, parse_mvn_text
from audio.lfr import apply_lfr
from audio.mel import FbankExtractor, compute_fbank, create_mel_filterbank
from audio.spectral import FFT512, frame_count, hamming_window, power_spectrum

__all__ = [
    "CmvnStats",
    "FFT512",
    "FbankExtractor",
    "apply_cmvn",
    "apply_lfr",
    "compute_fbank",
    "create_mel_filterbank",
    "frame_count",
    "hamming_window",
    "parse_mvn_text",
    "power_spectrum",
]
