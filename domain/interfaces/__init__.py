"""Abstract interfaces for the news search core."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from domain.entities import Document, ScoredDocument, SourceStatistic


class CorpusGateway(ABC):
    """Read-only access to the externally owned article corpus.

    Implementations return already-persisted, paginated data and signal
    storage or network faults by raising; the search core wraps those into
    ``CorpusUnavailable``.
    """

    @abstractmethod
    def fetch_documents(self, user_id: str, limit: int) -> list[Document]:
        """Return up to ``limit`` documents visible to the user."""

    @abstractmethod
    def fetch_date_range(self, user_id: str, start: datetime, end: datetime, limit: int) -> list[Document]:
        """Return up to ``limit`` documents published within ``[start, end]``."""

    @abstractmethod
    def fetch_source_statistics(self, user_id: str, limit: int) -> list[SourceStatistic]:
        """Return per-source document counts, most frequent first."""


class Reranker(ABC):
    """Orders documents by a combined relevance score."""

    @abstractmethod
    def rank(self, documents: Sequence[Document], query: str, user_id: str) -> list[ScoredDocument]:
        """Return scored documents, best first."""


__all__ = [
    "CorpusGateway",
    "Reranker",
]
