"""Use cases that run search pipelines over the external corpus."""
from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, TypeVar

from application.services.multi_criteria_filter import MultiCriteriaFilter
from application.services.relevance_ranker import CancelToken, RelevanceRanker, SentimentProfile
from application.services.search_history_store import SearchHistoryStore
from application.services.suggestion_trie import SuggestionTrie
from application.services.text_preprocessor import tokenize
from application.services.tfidf_index import TFIDFIndex
from domain.entities import (
    Document,
    ScoredDocument,
    SearchFilter,
    SearchResult,
    Suggestion,
    SuggestionType,
)
from domain.exceptions import CorpusUnavailable, EmptyQuery, SearchCancelled
from domain.interfaces import CorpusGateway

logger = logging.getLogger(__name__)

R = TypeVar("R")

SOURCE_RELEVANCE = 0.8
TITLE_RELEVANCE = 0.6
HISTORICAL_RELEVANCE = 0.6


def fetch_from_corpus(operation: str, call: Callable[..., R], *args: object) -> R:
    """Invoke a corpus call, turning any collaborator fault into ``CorpusUnavailable``."""

    try:
        return call(*args)
    except CorpusUnavailable:
        raise
    except Exception as exc:
        raise CorpusUnavailable(f"Corpus {operation} failed ({type(exc).__name__})") from exc


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def semantic_search(
    query: str,
    user_id: str,
    *,
    corpus: CorpusGateway,
    index: TFIDFIndex,
    ranker: RelevanceRanker,
    limit: int = 20,
    threshold: float = 0.1,
    fetch_limit: int = 1000,
    cancel: CancelToken | None = None,
) -> SearchResult[ScoredDocument]:
    """Rebuild the index over the current corpus and return ranked matches.

    Documents whose TF-IDF score falls below ``threshold`` are dropped before
    ranking. ``total_count`` is the number of documents that passed the
    threshold, before truncation to ``limit``.
    """

    if not query or not query.strip():
        raise EmptyQuery("Semantic search needs a non-empty query")
    started = time.perf_counter()

    documents = fetch_from_corpus("fetch_documents", corpus.fetch_documents, user_id, fetch_limit)
    snapshot = index.build(documents)
    query_terms = tokenize(query)

    candidates: list[Document] = []
    seen: set[str] = set()
    for document in documents:
        if cancel is not None and cancel.is_set():
            raise SearchCancelled("Semantic search cancelled")
        if document.id in seen:
            continue
        seen.add(document.id)
        if snapshot.score(document.id, query_terms) >= threshold:
            candidates.append(document)

    profile = SentimentProfile.from_documents(documents)
    ranked = ranker.rank(candidates, query, user_id, index=snapshot, profile=profile, cancel=cancel)
    results = ranked[: max(limit, 0)]
    duration_ms = _elapsed_ms(started)

    logger.info(
        "Semantic search for user %s: %d/%d documents above %.3f in %.1f ms",
        user_id,
        len(candidates),
        len(documents),
        threshold,
        duration_ms,
    )
    average = sum(item.score for item in results) / len(results) if results else 0.0
    return SearchResult(
        results=results,
        total_count=len(ranked),
        duration_ms=duration_ms,
        metadata={
            "query_terms": query_terms,
            "index_size": len(snapshot),
            "threshold": threshold,
            "candidate_count": len(candidates),
            "corpus_size": len(documents),
            "average_relevance_score": average,
        },
    )


def filter_search(
    search_filter: SearchFilter,
    user_id: str,
    *,
    corpus: CorpusGateway,
    criteria: MultiCriteriaFilter,
    fetch_limit: int = 1000,
) -> SearchResult[Document]:
    """Apply structured predicates, then sort and cut the requested page."""

    started = time.perf_counter()
    if search_filter.date_range is not None:
        documents = fetch_from_corpus(
            "fetch_date_range",
            corpus.fetch_date_range,
            user_id,
            search_filter.date_range.start,
            search_filter.date_range.end,
            fetch_limit,
        )
    else:
        documents = fetch_from_corpus("fetch_documents", corpus.fetch_documents, user_id, fetch_limit)

    matches = criteria.apply(documents, search_filter)
    ordered = criteria.sort(matches, search_filter.sort_by, search_filter.sort_order)
    page = criteria.paginate(ordered, search_filter)
    duration_ms = _elapsed_ms(started)

    logger.info(
        "Filter search for user %s: %d of %d documents matched %d predicates",
        user_id,
        len(matches),
        len(documents),
        search_filter.active_filter_count,
    )
    return SearchResult(
        results=page,
        total_count=len(matches),
        duration_ms=duration_ms,
        metadata={
            "original_count": len(documents),
            "active_filter_count": search_filter.active_filter_count,
            "query_complexity": search_filter.query_complexity,
        },
    )


def suggest(
    prefix: str,
    user_id: str,
    *,
    trie: SuggestionTrie,
    history: SearchHistoryStore,
    corpus: CorpusGateway,
    limit: int = 10,
    types: Iterable[SuggestionType] | None = None,
    source_limit: int = 20,
    historical_limit: int = 5,
    fetch_limit: int = 1000,
    dedupe: bool = False,
) -> list[Suggestion]:
    """Merge keyword, source, title and historical suggestions for ``prefix``.

    Sources backed by the corpus are optional: if the corpus fails, their
    suggestions are left out and the rest are still returned.
    """

    needle = (prefix or "").strip().lower()
    if not needle:
        raise EmptyQuery("Suggestions need a non-empty prefix")
    wanted = set(types) if types is not None else set(SuggestionType)

    suggestions: list[Suggestion] = []
    if SuggestionType.KEYWORD in wanted:
        suggestions.extend(trie.suggest(needle, limit))
    if SuggestionType.SOURCE in wanted:
        suggestions.extend(_source_suggestions(needle, user_id, corpus, source_limit, limit))
    if SuggestionType.TITLE in wanted:
        suggestions.extend(_title_suggestions(needle, user_id, corpus, fetch_limit, limit))
    if SuggestionType.HISTORICAL in wanted:
        past = history.query(user_id, limit=len(history), text_filter=needle)
        historical = [
            Suggestion(text=entry.query, type=SuggestionType.HISTORICAL, frequency=1, relevance_score=HISTORICAL_RELEVANCE)
            for entry in past
            if entry.query.lower().startswith(needle)
        ]
        suggestions.extend(historical[:historical_limit])

    if dedupe:
        suggestions = _dedupe(suggestions)
    suggestions.sort(key=lambda item: (-item.relevance_score, -item.frequency))
    return suggestions[: max(limit, 0)]


def _source_suggestions(needle: str, user_id: str, corpus: CorpusGateway, source_limit: int, limit: int) -> list[Suggestion]:
    try:
        statistics = fetch_from_corpus("fetch_source_statistics", corpus.fetch_source_statistics, user_id, source_limit)
    except CorpusUnavailable:
        logger.warning("Source statistics unavailable; omitting source suggestions", exc_info=True)
        return []
    matches = [
        Suggestion(text=stat.source, type=SuggestionType.SOURCE, frequency=stat.count, relevance_score=SOURCE_RELEVANCE)
        for stat in statistics
        if stat.source.lower().startswith(needle)
    ]
    return matches[:limit]


def _title_suggestions(needle: str, user_id: str, corpus: CorpusGateway, fetch_limit: int, limit: int) -> list[Suggestion]:
    try:
        documents = fetch_from_corpus("fetch_documents", corpus.fetch_documents, user_id, fetch_limit)
    except CorpusUnavailable:
        logger.warning("Corpus unavailable; omitting title suggestions", exc_info=True)
        return []
    counts: dict[str, int] = {}
    titles: dict[str, str] = {}
    for document in documents:
        key = document.title.lower()
        if key.startswith(needle):
            counts[key] = counts.get(key, 0) + 1
            titles.setdefault(key, document.title)
    ordered = sorted(counts, key=lambda key: (-counts[key], titles[key]))
    return [
        Suggestion(text=titles[key], type=SuggestionType.TITLE, frequency=counts[key], relevance_score=TITLE_RELEVANCE)
        for key in ordered[:limit]
    ]


def _dedupe(suggestions: list[Suggestion]) -> list[Suggestion]:
    best: dict[str, Suggestion] = {}
    for suggestion in suggestions:
        key = suggestion.text.lower()
        current = best.get(key)
        if current is None or suggestion.relevance_score > current.relevance_score:
            best[key] = suggestion
    return list(best.values())


__all__ = ["semantic_search", "filter_search", "suggest", "fetch_from_corpus"]
