"""Public entry point of the search core."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, Sequence
from uuid import uuid4

from application.services.relevance_ranker import CancelToken, SentimentProfile
from application.use_cases.search import filter_search, semantic_search, suggest
from domain.entities import (
    AnalyticsSummary,
    Document,
    ScoredDocument,
    SearchFilter,
    SearchHistoryEntry,
    SearchResult,
    Suggestion,
    SuggestionType,
    utcnow,
)
from domain.interfaces import CorpusGateway
from infrastructure.config import Container, SearchConfig, build_default_container

logger = logging.getLogger(__name__)


class SearchOrchestrator:
    """Composes index, trie, filter, ranker and history into the public operations.

    State lives only in memory for the lifetime of the session: the index is
    rebuilt from the corpus on every semantic search, and history is lost on
    restart.
    """

    def __init__(self, container: Container, *, now: Callable[[], datetime] = utcnow) -> None:
        self._container = container
        self._now = now

    @classmethod
    def from_config(
        cls,
        config: SearchConfig | None = None,
        *,
        corpus: CorpusGateway | None = None,
        now: Callable[[], datetime] = utcnow,
    ) -> SearchOrchestrator:
        return cls(build_default_container(config, corpus=corpus, now=now), now=now)

    @property
    def container(self) -> Container:
        return self._container

    def semantic_search(
        self,
        query: str,
        user_id: str,
        limit: int = 20,
        threshold: float = 0.1,
        *,
        cancel: CancelToken | None = None,
    ) -> SearchResult[ScoredDocument]:
        c = self._container
        result = semantic_search(
            query,
            user_id,
            corpus=c.corpus,
            index=c.index,
            ranker=c.ranker,
            limit=limit,
            threshold=threshold,
            fetch_limit=c.config.corpus_fetch_limit,
            cancel=cancel,
        )
        self._record_completed(query, SearchFilter(query=query), result, user_id)
        return result

    def filter_search(self, search_filter: SearchFilter, user_id: str) -> SearchResult[Document]:
        c = self._container
        result = filter_search(
            search_filter,
            user_id,
            corpus=c.corpus,
            criteria=c.criteria,
            fetch_limit=c.config.corpus_fetch_limit,
        )
        self._record_completed(search_filter.query or "", search_filter, result, user_id)
        return result

    def suggest(
        self,
        prefix: str,
        user_id: str,
        limit: int = 10,
        types: Iterable[SuggestionType] | None = None,
    ) -> list[Suggestion]:
        c = self._container
        return suggest(
            prefix,
            user_id,
            trie=c.trie,
            history=c.history,
            corpus=c.corpus,
            limit=limit,
            types=types,
            source_limit=c.config.source_statistics_limit,
            historical_limit=c.config.historical_suggestion_limit,
            fetch_limit=c.config.corpus_fetch_limit,
            dedupe=c.config.dedupe_suggestions,
        )

    def rank(self, documents: Sequence[Document], query: str, user_id: str) -> list[ScoredDocument]:
        """Rank a caller-supplied set; the semantic signal is computed relative to that set."""

        profile = SentimentProfile.from_documents(documents)
        return self._container.ranker.rank(documents, query, user_id, profile=profile)

    def record_history(self, entry: SearchHistoryEntry) -> None:
        self._container.history.record(entry)

    def get_history(self, user_id: str, limit: int = 50, text_filter: str | None = None) -> list[SearchHistoryEntry]:
        return self._container.history.query(user_id, limit=limit, text_filter=text_filter)

    def clear_history(self, user_id: str, older_than: datetime | None = None) -> None:
        self._container.history.clear(user_id, older_than)

    def get_analytics(self, user_id: str, date_range: timedelta | None = None) -> AnalyticsSummary:
        return self._container.history.analytics(user_id, date_range)

    def _record_completed(self, query: str, search_filter: SearchFilter, result: SearchResult, user_id: str) -> None:
        entry = SearchHistoryEntry(
            id=str(uuid4()),
            query=query,
            filter=search_filter,
            timestamp=self._now(),
            result_count=len(result.results),
            duration_ms=result.duration_ms,
            user_id=user_id,
        )
        self.record_history(entry)
        logger.debug("Recorded history entry %s for user %s", entry.id, user_id)


__all__ = ["SearchOrchestrator"]
