"""
CMVN: per-dimension shift/scale parsed from a Kaldi-style am.mvn text file.

The file holds an <AddShift> and a <Rescale> component, each followed by
"<LearnRateCoef> 0 [ v1 v2 ... ]". Both vectors must have exactly 560 values.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import numpy as np

from audio.constants import FEATURE_DIM
from sdk.abstractions import ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmvnStats:
    shift: np.ndarray
    scale: np.ndarray


def _extract_block(mvn_text: str, tag: str) -> np.ndarray:
    pattern = re.compile(rf"<{tag}>[\s\S]*?<LearnRateCoef>\s*0\s*\[([^\]]+)\]")
    m = pattern.search(mvn_text)
    if not m:
        raise ParseError(f"Failed to parse {tag} from MVN")
    try:
        values = [float(v) for v in m.group(1).split()]
    except ValueError as e:
        raise ParseError(f"Non-numeric value in {tag} block: {e}") from e
    return np.asarray(values, dtype=np.float32)


def parse_mvn_text(mvn_text: str) -> CmvnStats:
    """Parse shift and scale vectors; raise ParseError unless both have length 560."""
    shift = _extract_block(mvn_text or "", "AddShift")
    scale = _extract_block(mvn_text or "", "Rescale")
    if shift.shape[0] != FEATURE_DIM or scale.shape[0] != FEATURE_DIM:
        raise ParseError(
            f"Unexpected CMVN length shift={shift.shape[0]} scale={scale.shape[0]}"
        )
    logger.debug("Parsed CMVN stats (%d dims)", FEATURE_DIM)
    return CmvnStats(shift=shift, scale=scale)


def apply_cmvn(feats: np.ndarray, stats: CmvnStats) -> np.ndarray:
    """out[i] = (in[i] + shift[i mod 560]) * scale[i mod 560]; accepts [T, 560] or flat input."""
    x = np.asarray(feats, dtype=np.float32)
    shape = x.shape
    flat = x.reshape(-1, FEATURE_DIM)
    out = (flat + stats.shift) * stats.scale
    return out.reshape(shape).astype(np.float32)


__all__ = ["CmvnStats", "apply_cmvn", "parse_mvn_text"]
