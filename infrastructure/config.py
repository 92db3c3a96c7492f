"""Configuration and dependency wiring for the search core."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Literal, Mapping

from application.services.multi_criteria_filter import MultiCriteriaFilter
from application.services.relevance_ranker import RankingWeights, RelevanceRanker
from application.services.search_history_store import SearchHistoryStore
from application.services.suggestion_trie import SuggestionTrie
from application.services.tfidf_index import TFIDFIndex
from domain.entities import utcnow
from domain.exceptions import InvalidConfiguration
from domain.interfaces import CorpusGateway
from infrastructure.corpus.in_memory_corpus import InMemoryCorpus
from infrastructure.corpus.sqlite_corpus_repository import SqliteCorpusRepository

CorpusName = Literal["memory", "sqlite"]

ENV_PREFIX = "NEWSLENS_"


@dataclass(slots=True)
class SearchConfig:
    """Every tunable of the search core in one place."""

    corpus: CorpusName = "memory"
    sqlite_path: str = "newslens.db"
    history_capacity: int = 1000
    history_retention_days: int = 90
    corpus_fetch_limit: int = 1000
    source_statistics_limit: int = 20
    historical_suggestion_limit: int = 5
    recency_decay_days: float = 30.0
    dedupe_suggestions: bool = False
    weights: RankingWeights = field(default_factory=RankingWeights)

    def __post_init__(self) -> None:
        for name in ("history_capacity", "history_retention_days", "corpus_fetch_limit"):
            if getattr(self, name) <= 0:
                raise InvalidConfiguration(f"{name} must be positive")

    @property
    def history_retention(self) -> timedelta:
        return timedelta(days=self.history_retention_days)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SearchConfig:
        """Build a config, overriding defaults from ``NEWSLENS_*`` variables."""

        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for name, parse in _ENV_FIELDS.items():
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            try:
                overrides[name] = parse(raw)
            except ValueError as exc:
                raise InvalidConfiguration(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}") from exc
        if "corpus" in overrides and overrides["corpus"] not in _CORPUS_FACTORIES:
            raise InvalidConfiguration(f"Unknown corpus '{overrides['corpus']}'")
        return cls(**overrides)


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(raw)


def _parse_weights(raw: str) -> RankingWeights:
    parts = [float(part) for part in raw.split(",")]
    if len(parts) != 5:
        raise ValueError(raw)
    return RankingWeights(*parts)


_ENV_FIELDS: dict[str, Callable[[str], object]] = {
    "corpus": str.strip,
    "sqlite_path": str,
    "history_capacity": int,
    "history_retention_days": int,
    "corpus_fetch_limit": int,
    "source_statistics_limit": int,
    "historical_suggestion_limit": int,
    "recency_decay_days": float,
    "dedupe_suggestions": _parse_bool,
    "weights": _parse_weights,
}

_CORPUS_FACTORIES: dict[CorpusName, Callable[[SearchConfig], CorpusGateway]] = {
    "memory": lambda cfg: InMemoryCorpus(),
    "sqlite": lambda cfg: SqliteCorpusRepository(cfg.sqlite_path),
}


@dataclass(slots=True)
class Container:
    """Bundle of the components one search session owns."""

    config: SearchConfig
    corpus: CorpusGateway
    index: TFIDFIndex
    trie: SuggestionTrie
    history: SearchHistoryStore
    criteria: MultiCriteriaFilter
    ranker: RelevanceRanker


def build_default_container(
    config: SearchConfig | None = None,
    *,
    corpus: CorpusGateway | None = None,
    now: Callable[[], datetime] = utcnow,
) -> Container:
    """Instantiate the default component stack."""

    cfg = config or SearchConfig()
    if corpus is None:
        try:
            corpus = _CORPUS_FACTORIES[cfg.corpus](cfg)
        except KeyError as exc:
            raise InvalidConfiguration(f"Unknown corpus '{cfg.corpus}'") from exc
    trie = SuggestionTrie()
    history = SearchHistoryStore(
        trie,
        capacity=cfg.history_capacity,
        retention=cfg.history_retention,
        now=now,
    )
    ranker = RelevanceRanker(cfg.weights, recency_decay_days=cfg.recency_decay_days, now=now)

    return Container(
        config=cfg,
        corpus=corpus,
        index=TFIDFIndex(),
        trie=trie,
        history=history,
        criteria=MultiCriteriaFilter(),
        ranker=ranker,
    )


__all__ = ["Container", "SearchConfig", "build_default_container"]
