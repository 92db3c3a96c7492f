"""Corpus gateway backed by a Python list, for demos and tests."""
from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Iterable

from domain.entities import Document, SourceStatistic, as_utc
from domain.interfaces import CorpusGateway


class InMemoryCorpus(CorpusGateway):
    """Serves documents in insertion order; every user sees the same set."""

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._documents: list[Document] = list(documents)

    def add(self, document: Document) -> None:
        self._documents.append(document)

    def fetch_documents(self, user_id: str, limit: int) -> list[Document]:
        return self._documents[: max(limit, 0)]

    def fetch_date_range(self, user_id: str, start: datetime, end: datetime, limit: int) -> list[Document]:
        start, end = as_utc(start), as_utc(end)
        matches = [doc for doc in self._documents if start <= doc.published_at <= end]
        return matches[: max(limit, 0)]

    def fetch_source_statistics(self, user_id: str, limit: int) -> list[SourceStatistic]:
        counts = Counter(doc.source for doc in self._documents if doc.source)
        return [SourceStatistic(source=source, count=count) for source, count in counts.most_common(limit)]


__all__ = ["InMemoryCorpus"]
