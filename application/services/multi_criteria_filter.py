"""Structured filtering of a document set by a chain of predicates."""
from __future__ import annotations

import math
from typing import Callable, Iterable, Sequence

from application.services.relevance_ranker import RelevanceRanker
from domain.entities import Document, SearchFilter, SortBy, SortOrder

Predicate = Callable[[Document], bool]

WORDS_PER_MINUTE = 200


def estimate_reading_time(content: str) -> int:
    """Minutes to read ``content`` at 200 words per minute, clamped to 1..60."""

    words = len(content.split())
    if not words:
        return 0
    return min(max(math.ceil(words / WORDS_PER_MINUTE), 1), 60)


class MultiCriteriaFilter:
    """Applies date, text, source, sentiment, keyword and bookmark predicates in that order."""

    def predicates(self, search_filter: SearchFilter) -> list[Predicate]:
        predicates: list[Predicate] = []

        if search_filter.date_range is not None:
            date_range = search_filter.date_range
            predicates.append(lambda doc: date_range.contains(doc.published_at))

        if search_filter.has_query:
            needle = search_filter.query.strip().lower()
            predicates.append(lambda doc: self._matches_text(doc, needle))

        if search_filter.has_sources:
            sources = {source.lower() for source in search_filter.sources}
            predicates.append(lambda doc: doc.source.lower() in sources)

        if search_filter.sentiments is not None:
            sentiments = search_filter.sentiments
            predicates.append(lambda doc: sentiments.matches(doc.sentiment_score, doc.sentiment_label))

        if search_filter.keywords is not None:
            keywords = search_filter.keywords
            predicates.append(lambda doc: keywords.matches(doc.keywords, doc.body_text))

        if search_filter.is_bookmarked is not None:
            wanted = search_filter.is_bookmarked
            predicates.append(lambda doc: doc.is_bookmarked == wanted)

        return predicates

    def apply(self, documents: Iterable[Document], search_filter: SearchFilter) -> list[Document]:
        results = list(documents)
        for predicate in self.predicates(search_filter):
            results = [doc for doc in results if predicate(doc)]
        return results

    @staticmethod
    def sort(documents: Sequence[Document], sort_by: SortBy, sort_order: SortOrder) -> list[Document]:
        key = _SORT_KEYS.get(sort_by)
        if key is None:
            return list(documents)
        return sorted(documents, key=key, reverse=sort_order is SortOrder.DESCENDING)

    @staticmethod
    def paginate(documents: Sequence[Document], search_filter: SearchFilter) -> list[Document]:
        start = search_filter.offset
        return list(documents[start : start + search_filter.limit])

    @staticmethod
    def _matches_text(document: Document, needle: str) -> bool:
        if needle in document.title.lower() or needle in document.summary.lower() or needle in document.content.lower():
            return True
        return any(needle in keyword.lower() for keyword in document.keywords)


_SORT_KEYS: dict[SortBy, Callable[[Document], object]] = {
    SortBy.PUBLISHED_AT: lambda doc: doc.published_at,
    SortBy.SENTIMENT_SCORE: lambda doc: doc.sentiment_score,
    SortBy.TITLE: lambda doc: doc.title,
    SortBy.SOURCE: lambda doc: doc.source,
    SortBy.READING_TIME: lambda doc: estimate_reading_time(doc.content),
    SortBy.ENGAGEMENT: RelevanceRanker.engagement_score,
}


__all__ = ["MultiCriteriaFilter", "estimate_reading_time"]
