"""Prefix tree of seen terms used for keyword autocomplete."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field

from domain.entities import Suggestion, SuggestionType

KEYWORD_RELEVANCE = 0.7


@dataclass(slots=True)
class TrieNode:
    children: dict[str, TrieNode] = field(default_factory=dict)
    is_end_of_word: bool = False
    frequency: int = 0


class SuggestionTrie:
    """Insert-only trie; counters never decrease and nodes are never removed."""

    def __init__(self) -> None:
        self._root = TrieNode()
        self._lock = threading.Lock()

    def insert(self, word: str) -> None:
        word = word.lower()
        if not word:
            return
        with self._lock:
            node = self._root
            for char in word:
                child = node.children.get(char)
                if child is None:
                    child = node.children[char] = TrieNode()
                node = child
            node.is_end_of_word = True
            node.frequency += 1

    def frequency(self, word: str) -> int:
        with self._lock:
            node = self._find(word.lower())
            return node.frequency if node is not None and node.is_end_of_word else 0

    def suggest(self, prefix: str, limit: int = 10) -> list[Suggestion]:
        """Return up to ``limit`` words under ``prefix``, most frequent first.

        Collection stops as soon as ``limit`` words are gathered, so with a
        small limit the result is the first words met in depth-first order,
        then sorted by frequency.
        """

        if limit <= 0:
            return []
        prefix = prefix.lower()
        with self._lock:
            start = self._find(prefix)
            if start is None:
                return []
            collected: list[tuple[str, int]] = []
            stack: list[tuple[TrieNode, str]] = [(start, prefix)]
            while stack and len(collected) < limit:
                node, word = stack.pop()
                if node.is_end_of_word:
                    collected.append((word, node.frequency))
                for char, child in reversed(node.children.items()):
                    stack.append((child, word + char))

        collected.sort(key=lambda item: item[1], reverse=True)
        return [
            Suggestion(text=word, type=SuggestionType.KEYWORD, frequency=count, relevance_score=KEYWORD_RELEVANCE)
            for word, count in collected[:limit]
        ]

    def _find(self, prefix: str) -> TrieNode | None:
        node = self._root
        for char in prefix:
            node = node.children.get(char)
            if node is None:
                return None
        return node


__all__ = ["SuggestionTrie", "TrieNode", "KEYWORD_RELEVANCE"]
