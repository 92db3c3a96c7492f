"""In-memory search history with capacity and age-based retention."""
from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable

import numpy as np

from application.services.suggestion_trie import SuggestionTrie
from application.services.text_preprocessor import tokenize
from domain.entities import AnalyticsSummary, SearchHistoryEntry, as_utc, utcnow

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000
DEFAULT_RETENTION = timedelta(days=90)
TOP_QUERY_COUNT = 10


class SearchHistoryStore:
    """Append-and-prune log of completed searches.

    Writers are serialised by a lock; readers work on a copy taken under the
    same lock. Every recorded query is also fed into the suggestion trie.
    """

    def __init__(
        self,
        trie: SuggestionTrie | None = None,
        *,
        capacity: int = DEFAULT_CAPACITY,
        retention: timedelta = DEFAULT_RETENTION,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._entries: list[SearchHistoryEntry] = []
        self._trie = trie
        self._capacity = capacity
        self._retention = retention
        self._now = now
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry: SearchHistoryEntry) -> None:
        """Store ``entry``, then enforce retention and capacity.

        The entry is compared against the retention cutoff before it is
        appended, so a rejected entry leaves the store untouched.
        """

        with self._lock:
            cutoff = self._cutoff()
            expired = entry.timestamp < cutoff
            self._sweep_locked(cutoff)
            if expired:
                logger.debug("Dropping history entry %s older than retention", entry.id)
            else:
                self._entries.append(entry)
                overflow = len(self._entries) - self._capacity
                if overflow > 0:
                    del self._entries[:overflow]
        if self._trie is not None:
            for term in tokenize(entry.query):
                self._trie.insert(term)

    def sweep(self) -> int:
        """Drop entries older than the retention window; return how many went."""

        with self._lock:
            return self._sweep_locked(self._cutoff())

    def query(self, user_id: str, limit: int = 50, text_filter: str | None = None) -> list[SearchHistoryEntry]:
        entries = [entry for entry in self._snapshot() if entry.user_id == user_id]
        if text_filter:
            needle = text_filter.lower()
            entries = [entry for entry in entries if needle in entry.query.lower()]
        entries.sort(key=lambda entry: entry.timestamp, reverse=True)
        return entries[: max(limit, 0)]

    def clear(self, user_id: str, older_than: datetime | None = None) -> int:
        if older_than is not None:
            older_than = as_utc(older_than)
        with self._lock:
            before = len(self._entries)
            self._entries = [
                entry
                for entry in self._entries
                if entry.user_id != user_id or (older_than is not None and entry.timestamp >= older_than)
            ]
            removed = before - len(self._entries)
        logger.info("Cleared %d history entries for user %s", removed, user_id)
        return removed

    def analytics(self, user_id: str, date_range: timedelta | None = None) -> AnalyticsSummary:
        cutoff = as_utc(self._now()) - date_range if date_range is not None else None
        entries = [
            entry
            for entry in self._snapshot()
            if entry.user_id == user_id and (cutoff is None or entry.timestamp >= cutoff)
        ]
        range_days = date_range.days if date_range is not None else None
        if not entries:
            return AnalyticsSummary(date_range_days=range_days)

        result_counts = np.array([entry.result_count for entry in entries], dtype=float)
        durations = np.array([entry.duration_ms for entry in entries], dtype=float)
        query_lengths = np.array([len(entry.query) for entry in entries], dtype=float)
        by_hour = np.bincount([entry.timestamp.astimezone(timezone.utc).hour for entry in entries], minlength=24)
        queries = Counter(entry.query for entry in entries)

        return AnalyticsSummary(
            total_searches=len(entries),
            average_result_count=float(result_counts.mean()),
            average_duration_ms=float(durations.mean()),
            unique_queries=len(queries),
            average_query_length=float(query_lengths.mean()),
            most_frequent_queries=queries.most_common(TOP_QUERY_COUNT),
            searches_by_hour={hour: int(count) for hour, count in enumerate(by_hour) if count},
            date_range_days=range_days,
        )

    def _snapshot(self) -> list[SearchHistoryEntry]:
        with self._lock:
            return list(self._entries)

    def _cutoff(self) -> datetime:
        return as_utc(self._now()) - self._retention

    def _sweep_locked(self, cutoff: datetime) -> int:
        kept = [entry for entry in self._entries if entry.timestamp >= cutoff]
        removed = len(self._entries) - len(kept)
        if removed:
            self._entries = kept
            logger.debug("Pruned %d expired history entries", removed)
        return removed


__all__ = ["SearchHistoryStore", "DEFAULT_CAPACITY", "DEFAULT_RETENTION"]
