"""
Low frame rate (LFR) stacking: m consecutive Fbank frames per output row, stride n.
"""

from __future__ import annotations

import numpy as np

from audio.constants import LFR_M, LFR_N, N_MELS


def apply_lfr(feats: np.ndarray, lfr_m: int = LFR_M, lfr_n: int = LFR_N) -> np.ndarray:
    """
    Stack [T, D] features into [ceil(T / lfr_n), lfr_m * D].

    Slot j of output row i takes frame clamp(i * lfr_n + j, 0, T - 1), so the
    last rows repeat the final frame instead of zero-padding.
    """
    feats = np.asarray(feats, dtype=np.float32)
    dim = feats.shape[1] if feats.ndim == 2 else N_MELS
    t = feats.shape[0]
    if t == 0:
        return np.zeros((0, lfr_m * dim), dtype=np.float32)
    out_t = -(-t // lfr_n)
    idx = np.arange(out_t)[:, np.newaxis] * lfr_n + np.arange(lfr_m)[np.newaxis, :]
    idx = np.clip(idx, 0, t - 1)
    return feats[idx].reshape(out_t, lfr_m * dim)


__all__ = ["apply_lfr"]
