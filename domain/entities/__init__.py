"""Domain entities for the news search core."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Generic, Iterable, TypeVar

from domain.exceptions import InvalidConfiguration

T = TypeVar("T")

POSITIVE_SENTIMENT_FLOOR = 0.1
NEGATIVE_SENTIMENT_CEILING = -0.1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Return ``moment`` as an aware UTC datetime; naive values are taken to be UTC."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _as_tuple(values: Iterable[str] | None) -> tuple[str, ...] | None:
    if values is None:
        return None
    if isinstance(values, str):
        return (values,)
    return tuple(values)


class SortBy(str, Enum):
    PUBLISHED_AT = "published_at"
    SENTIMENT_SCORE = "sentiment_score"
    RELEVANCE_SCORE = "relevance_score"
    TITLE = "title"
    SOURCE = "source"
    READING_TIME = "reading_time"
    ENGAGEMENT = "engagement"


class SortOrder(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class KeywordMatchStrategy(str, Enum):
    OR = "or"
    AND = "and"


class SuggestionType(str, Enum):
    KEYWORD = "keyword"
    SOURCE = "source"
    TITLE = "title"
    HISTORICAL = "historical"


@dataclass(slots=True, frozen=True)
class Document:
    """A news article owned by the external corpus."""

    id: str
    title: str
    summary: str = ""
    content: str = ""
    source: str = ""
    published_at: datetime = field(default_factory=utcnow)
    keywords: tuple[str, ...] = ()
    sentiment_score: float = 0.0
    sentiment_label: str = "neutral"
    is_bookmarked: bool = False
    url: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "published_at", as_utc(self.published_at))

    @property
    def body_text(self) -> str:
        return f"{self.title} {self.summary} {self.content}"


@dataclass(slots=True, frozen=True)
class DateRange:
    """Publication window with inclusive bounds."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.start > self.end:
            raise InvalidConfiguration("Date range start must not be after its end")

    @classmethod
    def today(cls, now: datetime | None = None) -> DateRange:
        now = now or utcnow()
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return cls(start=start, end=start + timedelta(days=1))

    @classmethod
    def last_week(cls, now: datetime | None = None) -> DateRange:
        now = now or utcnow()
        return cls(start=now - timedelta(days=7), end=now)

    @classmethod
    def last_month(cls, now: datetime | None = None) -> DateRange:
        now = now or utcnow()
        return cls(start=now - timedelta(days=30), end=now)

    @classmethod
    def last_year(cls, now: datetime | None = None) -> DateRange:
        now = now or utcnow()
        return cls(start=now - timedelta(days=365), end=now)

    def contains(self, moment: datetime) -> bool:
        return self.start <= as_utc(moment) <= self.end


@dataclass(slots=True, frozen=True)
class SentimentFilter:
    """Sentiment predicate over a document's score and label."""

    labels: tuple[str, ...] | None = None
    min_score: float | None = None
    max_score: float | None = None
    include_positive: bool = True
    include_negative: bool = True
    include_neutral: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", _as_tuple(self.labels))
        if self.min_score is not None and self.max_score is not None and self.min_score > self.max_score:
            raise InvalidConfiguration("Sentiment min_score must not exceed max_score")

    @classmethod
    def positive_only(cls) -> SentimentFilter:
        return cls(labels=("positive",), min_score=POSITIVE_SENTIMENT_FLOOR, include_negative=False, include_neutral=False)

    @classmethod
    def negative_only(cls) -> SentimentFilter:
        return cls(labels=("negative",), max_score=NEGATIVE_SENTIMENT_CEILING, include_positive=False, include_neutral=False)

    @classmethod
    def neutral_only(cls) -> SentimentFilter:
        return cls(
            labels=("neutral",),
            min_score=NEGATIVE_SENTIMENT_CEILING,
            max_score=POSITIVE_SENTIMENT_FLOOR,
            include_positive=False,
            include_negative=False,
        )

    def matches(self, score: float, label: str) -> bool:
        if self.labels is not None and label not in self.labels:
            return False
        if self.min_score is not None and score < self.min_score:
            return False
        if self.max_score is not None and score > self.max_score:
            return False
        if score > POSITIVE_SENTIMENT_FLOOR:
            return self.include_positive
        if score < NEGATIVE_SENTIMENT_CEILING:
            return self.include_negative
        return self.include_neutral


@dataclass(slots=True, frozen=True)
class KeywordFilter:
    """Keyword predicate with exact, fuzzy and excluded terms."""

    exact_keywords: tuple[str, ...] = ()
    fuzzy_keywords: tuple[str, ...] = ()
    exclude_keywords: tuple[str, ...] = ()
    min_match_count: int | None = None
    strategy: KeywordMatchStrategy = KeywordMatchStrategy.OR
    case_sensitive: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "exact_keywords", _as_tuple(self.exact_keywords) or ())
        object.__setattr__(self, "fuzzy_keywords", _as_tuple(self.fuzzy_keywords) or ())
        object.__setattr__(self, "exclude_keywords", _as_tuple(self.exclude_keywords) or ())
        if self.min_match_count is not None and self.min_match_count < 0:
            raise InvalidConfiguration("Keyword min_match_count must be non-negative")

    def matches(self, keywords: Iterable[str], text: str) -> bool:
        """Return True when the keywords/body text satisfy this predicate."""

        fold = (lambda value: value) if self.case_sensitive else str.lower
        haystack = fold(text)
        article_keywords = [fold(keyword) for keyword in keywords]

        for excluded in self.exclude_keywords:
            needle = fold(excluded)
            if needle in article_keywords or needle in haystack:
                return False

        match_count = 0
        for exact in self.exact_keywords:
            needle = fold(exact)
            if needle in article_keywords or needle in haystack:
                match_count += 1
            elif self.strategy is KeywordMatchStrategy.AND:
                return False

        for fuzzy in self.fuzzy_keywords:
            needle = fold(fuzzy)
            hit = any(needle in keyword or keyword in needle for keyword in article_keywords if keyword)
            if hit or needle in haystack:
                match_count += 1
            elif self.strategy is KeywordMatchStrategy.AND:
                return False

        if self.min_match_count is not None:
            return match_count >= self.min_match_count
        # exclude-only filters keep everything that survived the exclusion pass
        if not self.exact_keywords and not self.fuzzy_keywords:
            return True
        return match_count > 0


@dataclass(slots=True, frozen=True)
class SearchFilter:
    """Immutable set of optional predicates; an unset field constrains nothing."""

    query: str | None = None
    date_range: DateRange | None = None
    sources: tuple[str, ...] | None = None
    sentiments: SentimentFilter | None = None
    keywords: KeywordFilter | None = None
    is_bookmarked: bool | None = None
    sort_by: SortBy = SortBy.PUBLISHED_AT
    sort_order: SortOrder = SortOrder.DESCENDING
    limit: int = 20
    offset: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "sources", _as_tuple(self.sources))
        if self.limit <= 0:
            raise InvalidConfiguration("Filter limit must be positive")
        if self.offset < 0:
            raise InvalidConfiguration("Filter offset must be non-negative")

    @property
    def has_query(self) -> bool:
        return bool(self.query and self.query.strip())

    @property
    def has_sources(self) -> bool:
        return bool(self.sources)

    @property
    def active_filter_count(self) -> int:
        flags = (
            self.has_query,
            self.has_sources,
            self.date_range is not None,
            self.sentiments is not None,
            self.keywords is not None,
            self.is_bookmarked is not None,
        )
        return sum(1 for flag in flags if flag)

    @property
    def query_complexity(self) -> int:
        complexity = 0
        if self.has_query:
            complexity += 2
        if self.date_range is not None:
            complexity += 1
        if self.has_sources:
            complexity += 1
        if self.sentiments is not None:
            complexity += 2
        if self.keywords is not None:
            complexity += 3
        if self.is_bookmarked is not None:
            complexity += 1
        return complexity


@dataclass(slots=True, frozen=True)
class Suggestion:
    """Autocomplete candidate."""

    text: str
    type: SuggestionType
    frequency: int
    relevance_score: float = 0.0


@dataclass(slots=True, frozen=True)
class SourceStatistic:
    source: str
    count: int


@dataclass(slots=True)
class ScoredDocument:
    """A document with its combined relevance and per-signal breakdown."""

    document: Document
    score: float
    breakdown: dict[str, float] = field(default_factory=dict)


@dataclass
class SearchResult(Generic[T]):
    """Results of one search call plus bookkeeping."""

    results: list[T]
    total_count: int
    duration_ms: float
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class SearchHistoryEntry:
    """A completed search."""

    id: str
    query: str
    filter: SearchFilter
    timestamp: datetime
    result_count: int
    duration_ms: float
    user_id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))


@dataclass(slots=True)
class AnalyticsSummary:
    total_searches: int = 0
    average_result_count: float = 0.0
    average_duration_ms: float = 0.0
    unique_queries: int = 0
    average_query_length: float = 0.0
    most_frequent_queries: list[tuple[str, int]] = field(default_factory=list)
    searches_by_hour: dict[int, int] = field(default_factory=dict)
    date_range_days: int | None = None


__all__ = [
    "Document",
    "DateRange",
    "SentimentFilter",
    "KeywordFilter",
    "KeywordMatchStrategy",
    "SearchFilter",
    "SortBy",
    "SortOrder",
    "Suggestion",
    "SuggestionType",
    "SourceStatistic",
    "ScoredDocument",
    "SearchResult",
    "SearchHistoryEntry",
    "AnalyticsSummary",
    "as_utc",
    "utcnow",
]
