"""
CTC greedy decoding of [1, T, V] logits into text.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from sdk.abstractions import ShapeError
from stt.tokens import TokenVocabulary

BLANK_ID = 0
SPECIAL_PIECES = frozenset({"<unk>", "<s>", "</s>"})
# SentencePiece word-boundary marker
WORD_BOUNDARY = "▁"


def greedy_ids(logits: np.ndarray, blank_id: int = BLANK_ID) -> list[int]:
    """
    Argmax per timestep, then collapse repeats and drop blanks.
    Collapse compares against the previous raw argmax, so a blank between two
    equal ids keeps both.
    """
    arr = np.asarray(logits)
    if arr.ndim != 3:
        raise ShapeError(f"Expected logits of shape [1, T, V], got {arr.shape}")
    if arr.shape[0] != 1:
        raise ShapeError(f"Only batch=1 supported, got {arr.shape[0]}")
    if arr.shape[1] == 0:
        return []
    if arr.shape[2] == 0:
        raise ShapeError(f"Logits have an empty vocabulary axis: {arr.shape}")
    # np.argmax returns the first maximal index, i.e. strictly-greater wins.
    best = np.argmax(arr[0], axis=-1)
    out: list[int] = []
    prev = -1
    for idx in best.tolist():
        if idx != blank_id and idx != prev:
            out.append(idx)
        prev = idx
    return out


def decode_ctc_greedy(
    logits: np.ndarray,
    tokens: TokenVocabulary | Sequence[str],
    blank_id: int = BLANK_ID,
) -> str:
    vocab = tokens if isinstance(tokens, TokenVocabulary) else TokenVocabulary(tokens)
    pieces = []
    for token_id in greedy_ids(logits, blank_id):
        piece = vocab[token_id]
        if not piece or piece in SPECIAL_PIECES:
            continue
        pieces.append(piece)
    return "".join(pieces).replace(WORD_BOUNDARY, " ").strip()


__all__ = ["BLANK_ID", "SPECIAL_PIECES", "WORD_BOUNDARY", "decode_ctc_greedy", "greedy_ids"]
