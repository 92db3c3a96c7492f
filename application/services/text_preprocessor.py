"""Text normalisation shared by the index, the trie and the history store."""
from __future__ import annotations

import re

_NON_ALNUM = re.compile(r"[^\w\s]|_")
MIN_TOKEN_LENGTH = 3


def tokenize(text: str | None) -> list[str]:
    """Lowercase, drop punctuation and return tokens longer than two characters."""

    if not text:
        return []
    cleaned = _NON_ALNUM.sub(" ", text.lower())
    return [token for token in cleaned.split() if len(token) >= MIN_TOKEN_LENGTH]


__all__ = ["tokenize", "MIN_TOKEN_LENGTH"]
