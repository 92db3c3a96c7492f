import unittest
from datetime import datetime, timedelta, timezone

from application.services.multi_criteria_filter import MultiCriteriaFilter, estimate_reading_time
from domain.entities import (
    DateRange,
    Document,
    KeywordFilter,
    KeywordMatchStrategy,
    SearchFilter,
    SentimentFilter,
    SortBy,
    SortOrder,
)
from domain.exceptions import InvalidConfiguration

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def _documents() -> list[Document]:
    return [
        Document(
            id="d1",
            title="Central bank holds rates",
            summary="Policy unchanged",
            source="Bloomberg",
            published_at=NOW - timedelta(days=1),
            keywords=("rates", "economy"),
            sentiment_score=0.0,
            sentiment_label="neutral",
        ),
        Document(
            id="d2",
            title="Election results announced",
            content="Turnout was high across the country",
            source="reuters",
            published_at=NOW - timedelta(days=5),
            keywords=("politics",),
            sentiment_score=0.6,
            sentiment_label="positive",
            is_bookmarked=True,
        ),
        Document(
            id="d3",
            title="Storm damages coastline",
            source="BBC",
            published_at=NOW - timedelta(days=20),
            keywords=("weather", "climate"),
            sentiment_score=-0.7,
            sentiment_label="negative",
        ),
    ]


class TestMultiCriteriaFilter(unittest.TestCase):
    def setUp(self) -> None:
        self.criteria = MultiCriteriaFilter()
        self.documents = _documents()

    def ids(self, documents):
        return [doc.id for doc in documents]

    def test_empty_filter_is_identity(self):
        result = self.criteria.apply(self.documents, SearchFilter())
        self.assertEqual(self.ids(result), ["d1", "d2", "d3"])

    def test_empty_values_are_not_constraints(self):
        result = self.criteria.apply(self.documents, SearchFilter(query="   ", sources=[]))
        self.assertEqual(self.ids(result), ["d1", "d2", "d3"])

    def test_source_filter_is_case_insensitive(self):
        result = self.criteria.apply(self.documents, SearchFilter(sources=["Reuters"]))
        self.assertEqual(self.ids(result), ["d2"])

    def test_text_query_searches_body_and_keywords(self):
        self.assertEqual(self.ids(self.criteria.apply(self.documents, SearchFilter(query="TURNOUT"))), ["d2"])
        self.assertEqual(self.ids(self.criteria.apply(self.documents, SearchFilter(query="climate"))), ["d3"])

    def test_date_range_bounds_are_inclusive(self):
        window = DateRange(start=NOW - timedelta(days=5), end=NOW - timedelta(days=1))
        result = self.criteria.apply(self.documents, SearchFilter(date_range=window))
        self.assertEqual(self.ids(result), ["d1", "d2"])

    def test_naive_dates_are_compared_as_utc(self):
        naive_now = NOW.replace(tzinfo=None)
        documents = [
            Document(id="naive", title="Naive timestamp", published_at=naive_now - timedelta(days=2)),
            Document(id="old", title="Old naive timestamp", published_at=naive_now - timedelta(days=9)),
        ]
        self.assertEqual(documents[0].published_at.tzinfo, timezone.utc)

        aware_window = DateRange.last_week(now=NOW)
        naive_window = DateRange(start=naive_now - timedelta(days=3), end=naive_now)
        for window in (aware_window, naive_window):
            with self.subTest(window=window):
                result = self.criteria.apply(documents + self.documents, SearchFilter(date_range=window))
                self.assertIn("naive", self.ids(result))
                self.assertNotIn("old", self.ids(result))

    def test_sentiment_presets(self):
        positive = self.criteria.apply(self.documents, SearchFilter(sentiments=SentimentFilter.positive_only()))
        negative = self.criteria.apply(self.documents, SearchFilter(sentiments=SentimentFilter.negative_only()))
        neutral = self.criteria.apply(self.documents, SearchFilter(sentiments=SentimentFilter.neutral_only()))
        self.assertEqual(self.ids(positive), ["d2"])
        self.assertEqual(self.ids(negative), ["d3"])
        self.assertEqual(self.ids(neutral), ["d1"])

    def test_sentiment_score_window(self):
        sentiments = SentimentFilter(min_score=-0.1)
        self.assertEqual(self.ids(self.criteria.apply(self.documents, SearchFilter(sentiments=sentiments))), ["d1", "d2"])

    def test_keyword_or_and_strategies(self):
        any_of = KeywordFilter(exact_keywords=["politics", "weather"])
        all_of = KeywordFilter(exact_keywords=["weather", "climate"], strategy=KeywordMatchStrategy.AND)
        missing = KeywordFilter(exact_keywords=["weather", "rates"], strategy=KeywordMatchStrategy.AND)
        self.assertEqual(self.ids(self.criteria.apply(self.documents, SearchFilter(keywords=any_of))), ["d2", "d3"])
        self.assertEqual(self.ids(self.criteria.apply(self.documents, SearchFilter(keywords=all_of))), ["d3"])
        self.assertEqual(self.criteria.apply(self.documents, SearchFilter(keywords=missing)), [])

    def test_keyword_fuzzy_and_exclusion(self):
        fuzzy = KeywordFilter(fuzzy_keywords=["polit"])
        self.assertEqual(self.ids(self.criteria.apply(self.documents, SearchFilter(keywords=fuzzy))), ["d2"])

        exclude_only = KeywordFilter(exclude_keywords=["storm"])
        self.assertEqual(self.ids(self.criteria.apply(self.documents, SearchFilter(keywords=exclude_only))), ["d1", "d2"])

    def test_keyword_minimum_match_count(self):
        keywords = KeywordFilter(exact_keywords=["weather", "climate", "rates"], min_match_count=2)
        self.assertEqual(self.ids(self.criteria.apply(self.documents, SearchFilter(keywords=keywords))), ["d3"])

    def test_bookmark_flag(self):
        self.assertEqual(self.ids(self.criteria.apply(self.documents, SearchFilter(is_bookmarked=True))), ["d2"])
        self.assertEqual(self.ids(self.criteria.apply(self.documents, SearchFilter(is_bookmarked=False))), ["d1", "d3"])

    def test_predicates_combine(self):
        search_filter = SearchFilter(sources=["BBC", "Reuters"], sentiments=SentimentFilter(min_score=0.0))
        self.assertEqual(self.ids(self.criteria.apply(self.documents, search_filter)), ["d2"])
        self.assertEqual(search_filter.active_filter_count, 2)

    def test_sort_and_paginate(self):
        ordered = self.criteria.sort(self.documents, SortBy.TITLE, SortOrder.ASCENDING)
        self.assertEqual(self.ids(ordered), ["d1", "d2", "d3"])
        newest_first = self.criteria.sort(self.documents, SortBy.PUBLISHED_AT, SortOrder.DESCENDING)
        self.assertEqual(self.ids(newest_first), ["d1", "d2", "d3"])
        oldest_first = self.criteria.sort(self.documents, SortBy.PUBLISHED_AT, SortOrder.ASCENDING)
        self.assertEqual(self.ids(oldest_first), ["d3", "d2", "d1"])
        unchanged = self.criteria.sort(list(reversed(self.documents)), SortBy.RELEVANCE_SCORE, SortOrder.DESCENDING)
        self.assertEqual(self.ids(unchanged), ["d3", "d2", "d1"])

        page = self.criteria.paginate(ordered, SearchFilter(limit=1, offset=1))
        self.assertEqual(self.ids(page), ["d2"])

    def test_sort_by_engagement(self):
        ordered = self.criteria.sort(self.documents, SortBy.ENGAGEMENT, SortOrder.DESCENDING)
        self.assertEqual(self.ids(ordered), ["d2", "d3", "d1"])

    def test_malformed_filters_are_rejected(self):
        with self.assertRaises(InvalidConfiguration):
            SearchFilter(limit=0)
        with self.assertRaises(InvalidConfiguration):
            SearchFilter(offset=-1)
        with self.assertRaises(InvalidConfiguration):
            DateRange(start=NOW, end=NOW - timedelta(days=1))
        with self.assertRaises(InvalidConfiguration):
            SentimentFilter(min_score=0.5, max_score=-0.5)
        with self.assertRaises(InvalidConfiguration):
            KeywordFilter(min_match_count=-1)


class TestReadingTime(unittest.TestCase):
    def test_estimate(self):
        self.assertEqual(estimate_reading_time(""), 0)
        self.assertEqual(estimate_reading_time("word " * 10), 1)
        self.assertEqual(estimate_reading_time("word " * 450), 3)
        self.assertEqual(estimate_reading_time("word " * 50_000), 60)


if __name__ == "__main__":
    unittest.main()
