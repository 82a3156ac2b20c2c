"""
Strip SenseVoice rich-transcription markers (<|zh|>, <|HAPPY|>, [COUGH]) from decoded text.
"""

from __future__ import annotations

import re

_ANGLE_MARKER_RE = re.compile(r"<\|[^>]+\|>")
_SQUARE_MARKER_RE = re.compile(r"\[[^\]]+\]")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_transcript(text: str | None) -> str:
    if not text:
        return ""
    text = _ANGLE_MARKER_RE.sub(" ", text)
    text = _SQUARE_MARKER_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


__all__ = ["clean_transcript"]
