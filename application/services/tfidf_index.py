"""TF-IDF index rebuilt from a corpus snapshot and swapped in atomically."""
from __future__ import annotations

import logging
import math
import threading
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence

from application.services.text_preprocessor import tokenize
from domain.entities import Document
from domain.exceptions import IndexBuildFailure

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class IndexSnapshot:
    """One immutable generation of the index.

    A pipeline scores against the snapshot it built, so a concurrent rebuild
    for another corpus cannot change its results.
    """

    vectors: Mapping[str, Mapping[str, float]] = field(default_factory=dict)
    document_frequency: Mapping[str, int] = field(default_factory=dict)
    generation: int = 0

    def __len__(self) -> int:
        return len(self.vectors)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self.vectors

    def vector(self, document_id: str) -> Mapping[str, float]:
        return self.vectors.get(document_id, MappingProxyType({}))

    def score(self, document_id: str, query_terms: Sequence[str]) -> float:
        if not query_terms:
            return 0.0
        vector = self.vectors.get(document_id)
        if not vector:
            return 0.0
        total = 0.0
        for term in query_terms:
            total += vector.get(term, 0.0)
        return total / len(query_terms)


class TFIDFIndex:
    """Per-document term weights for one corpus generation.

    ``build`` computes a complete new state before publishing it, so a reader
    sees either the previous generation or the new one, never a mix.
    """

    def __init__(self) -> None:
        self._state = IndexSnapshot()
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._state.generation

    @property
    def document_frequency(self) -> Mapping[str, int]:
        return self._state.document_frequency

    @property
    def snapshot(self) -> IndexSnapshot:
        return self._state

    def __len__(self) -> int:
        return len(self._state)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._state

    def vector(self, document_id: str) -> Mapping[str, float]:
        return self._state.vector(document_id)

    def build(self, documents: Sequence[Document]) -> IndexSnapshot:
        """Index ``documents``, publish the result and return it."""

        tokenized: list[tuple[str, list[str]]] = []
        seen: set[str] = set()
        for document in documents:
            try:
                parts = (document.title, document.summary, document.content)
            except AttributeError as exc:
                raise IndexBuildFailure("Corpus entry is not a document") from exc
            if not all(isinstance(part, str) for part in parts):
                raise IndexBuildFailure(f"Document {document.id!r} has non-text fields")
            if document.id in seen:
                logger.warning("Skipping duplicate document id %r", document.id)
                continue
            seen.add(document.id)
            tokenized.append((document.id, tokenize(" ".join(parts))))

        document_frequency: Counter[str] = Counter()
        for _doc_id, terms in tokenized:
            document_frequency.update(set(terms))

        total_documents = len(tokenized)
        vectors: dict[str, Mapping[str, float]] = {}
        for doc_id, terms in tokenized:
            vectors[doc_id] = MappingProxyType(self._weigh(terms, document_frequency, total_documents))

        with self._lock:
            snapshot = IndexSnapshot(
                vectors=MappingProxyType(vectors),
                document_frequency=MappingProxyType(dict(document_frequency)),
                generation=self._state.generation + 1,
            )
            self._state = snapshot
        logger.debug(
            "TF-IDF index generation %d: %d documents, %d terms",
            snapshot.generation,
            total_documents,
            len(document_frequency),
        )
        return snapshot

    def score(self, document_id: str, query_terms: Sequence[str]) -> float:
        return self._state.score(document_id, query_terms)

    @staticmethod
    def _weigh(terms: list[str], document_frequency: Mapping[str, int], total_documents: int) -> dict[str, float]:
        if not terms:
            return {}
        counts = Counter(terms)
        length = len(terms)
        return {
            term: (count / length) * math.log(total_documents / document_frequency[term])
            for term, count in counts.items()
        }


__all__ = ["IndexSnapshot", "TFIDFIndex"]
