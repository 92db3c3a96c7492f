"""Multi-signal relevance ranking."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Mapping, Protocol, Sequence

import numpy as np

from application.services.text_preprocessor import tokenize
from application.services.tfidf_index import IndexSnapshot, TFIDFIndex
from domain.entities import Document, ScoredDocument, as_utc, utcnow
from domain.exceptions import InvalidConfiguration, SearchCancelled
from domain.interfaces import Reranker

logger = logging.getLogger(__name__)

SIGNALS = ("semantic", "recency", "source_authority", "engagement", "sentiment_alignment")
WEIGHT_EPSILON = 1e-6

SOURCE_AUTHORITY: Mapping[str, float] = {
    "reuters": 0.95,
    "bbc": 0.93,
    "ap": 0.92,
    "wall street journal": 0.90,
    "bloomberg": 0.88,
    "new york times": 0.87,
    "cnn": 0.85,
    "washington post": 0.85,
}
DEFAULT_AUTHORITY = 0.5
NEUTRAL_ALIGNMENT = 0.5


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


@dataclass(slots=True, frozen=True)
class RankingWeights:
    """Signal weights; must be non-negative and sum to 1.0."""

    semantic: float = 0.40
    recency: float = 0.25
    source_authority: float = 0.20
    engagement: float = 0.10
    sentiment_alignment: float = 0.05

    def __post_init__(self) -> None:
        values = self.as_array()
        if not np.all(np.isfinite(values)) or np.any(values < 0):
            raise InvalidConfiguration("Ranking weights must be finite and non-negative")
        if abs(float(values.sum()) - 1.0) > WEIGHT_EPSILON:
            raise InvalidConfiguration(f"Ranking weights must sum to 1.0, got {float(values.sum()):.6f}")

    def as_array(self) -> np.ndarray:
        return np.array([getattr(self, name) for name in SIGNALS], dtype=float)


@dataclass(slots=True, frozen=True)
class SentimentProfile:
    """Reading preferences derived from a corpus snapshot."""

    mean_sentiment: float
    bookmark_ratio: float

    @classmethod
    def from_documents(cls, documents: Sequence[Document]) -> SentimentProfile | None:
        if not documents:
            return None
        scores = np.array([doc.sentiment_score for doc in documents], dtype=float)
        bookmarked = sum(1 for doc in documents if doc.is_bookmarked)
        return cls(mean_sentiment=float(scores.mean()), bookmark_ratio=bookmarked / len(documents))


def combine(breakdown: Mapping[str, float], weights: RankingWeights) -> float:
    """Weighted sum of the named signals, clamped to [0, 1]."""

    signals = np.array([breakdown.get(name, 0.0) for name in SIGNALS], dtype=float)
    return float(np.clip(np.dot(signals, weights.as_array()), 0.0, 1.0))


class RelevanceRanker(Reranker):
    """Scores documents on semantic similarity, recency, authority, engagement and sentiment."""

    def __init__(
        self,
        weights: RankingWeights | None = None,
        *,
        authority: Mapping[str, float] | None = None,
        recency_decay_days: float = 30.0,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        if recency_decay_days <= 0:
            raise InvalidConfiguration("recency_decay_days must be positive")
        self.weights = weights or RankingWeights()
        self._authority = {name.lower(): score for name, score in (authority or SOURCE_AUTHORITY).items()}
        self._decay_days = recency_decay_days
        self._now = now

    def recency_score(self, published_at: datetime) -> float:
        age_days = max(0.0, (as_utc(self._now()) - as_utc(published_at)).total_seconds() / 86400.0)
        return math.exp(-age_days / self._decay_days)

    def source_authority_score(self, source: str) -> float:
        return self._authority.get(source.strip().lower(), DEFAULT_AUTHORITY)

    @staticmethod
    def engagement_score(document: Document) -> float:
        score = 0.3 if document.is_bookmarked else 0.0
        score += abs(document.sentiment_score) * 0.2
        return min(score, 1.0)

    @staticmethod
    def sentiment_alignment_score(document: Document, profile: SentimentProfile | None) -> float:
        if profile is None:
            return NEUTRAL_ALIGNMENT
        distance = abs(document.sentiment_score - profile.mean_sentiment)
        alignment = 1.0 - min(distance / 2.0, 1.0)
        return min(alignment + profile.bookmark_ratio * 0.2, 1.0)

    def breakdown(self, document: Document, semantic: float, profile: SentimentProfile | None) -> dict[str, float]:
        return {
            "semantic": semantic,
            "recency": self.recency_score(document.published_at),
            "source_authority": self.source_authority_score(document.source),
            "engagement": self.engagement_score(document),
            "sentiment_alignment": self.sentiment_alignment_score(document, profile),
        }

    def rank(
        self,
        documents: Sequence[Document],
        query: str,
        user_id: str,
        *,
        index: IndexSnapshot | None = None,
        profile: SentimentProfile | None = None,
        cancel: CancelToken | None = None,
    ) -> list[ScoredDocument]:
        """Score every document and return them best first.

        Ties keep the input order. When no index snapshot is given, one is built over
        ``documents`` so the semantic signal is relative to that set.
        """

        if not documents:
            return []
        if index is None:
            index = TFIDFIndex().build(documents)
        query_terms = tokenize(query)

        scored: list[ScoredDocument] = []
        for document in documents:
            if cancel is not None and cancel.is_set():
                raise SearchCancelled("Ranking cancelled")
            signals = self.breakdown(document, index.score(document.id, query_terms), profile)
            scored.append(ScoredDocument(document=document, score=combine(signals, self.weights), breakdown=signals))

        logger.debug("Ranked %d documents for user %s", len(scored), user_id)
        return sorted(scored, key=lambda item: item.score, reverse=True)


__all__ = [
    "RankingWeights",
    "RelevanceRanker",
    "SentimentProfile",
    "SOURCE_AUTHORITY",
    "combine",
]
