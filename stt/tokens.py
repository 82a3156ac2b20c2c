"""
Token vocabulary: id -> SentencePiece-style piece, loaded from tokens.json.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

from sdk.abstractions import ParseError


class TokenVocabulary:
    """Immutable id -> piece mapping. Ids outside the table map to None."""

    def __init__(self, pieces: Iterable[str | None]) -> None:
        self._pieces: tuple[str | None, ...] = tuple(pieces)

    @classmethod
    def from_json_value(cls, value: Any) -> TokenVocabulary:
        """
        Build from decoded tokens.json: either a list of pieces, or an object
        mapping string/int ids to pieces.
        """
        if isinstance(value, list):
            return cls(None if p is None else str(p) for p in value)
        if isinstance(value, dict):
            try:
                by_id = {int(k): (None if v is None else str(v)) for k, v in value.items()}
            except (TypeError, ValueError) as e:
                raise ParseError(f"Token ids must be integers: {e}") from e
            if not by_id:
                return cls(())
            if min(by_id) < 0:
                raise ParseError("Token ids must be non-negative")
            size = max(by_id) + 1
            return cls(by_id.get(i) for i in range(size))
        raise ParseError(f"Unexpected tokens JSON type: {type(value).__name__}")

    @classmethod
    def from_json_text(cls, text: str) -> TokenVocabulary:
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid tokens JSON: {e}") from e
        return cls.from_json_value(value)

    def __len__(self) -> int:
        return len(self._pieces)

    def __getitem__(self, token_id: int) -> str | None:
        if 0 <= token_id < len(self._pieces):
            return self._pieces[token_id]
        return None


__all__ = ["TokenVocabulary"]
