import tempfile
import unittest
from pathlib import Path

from application.services.relevance_ranker import RankingWeights
from domain.exceptions import InvalidConfiguration
from infrastructure.config import SearchConfig, build_default_container
from infrastructure.corpus.in_memory_corpus import InMemoryCorpus
from infrastructure.corpus.sqlite_corpus_repository import SqliteCorpusRepository


class TestSearchConfig(unittest.TestCase):
    def test_defaults(self):
        cfg = SearchConfig.from_env({})
        self.assertEqual(cfg.corpus, "memory")
        self.assertEqual(cfg.history_capacity, 1000)
        self.assertEqual(cfg.history_retention.days, 90)
        self.assertEqual(cfg.weights, RankingWeights())
        self.assertFalse(cfg.dedupe_suggestions)

    def test_environment_overrides(self):
        cfg = SearchConfig.from_env(
            {
                "NEWSLENS_HISTORY_CAPACITY": "50",
                "NEWSLENS_RECENCY_DECAY_DAYS": "7.5",
                "NEWSLENS_DEDUPE_SUGGESTIONS": "yes",
                "NEWSLENS_WEIGHTS": "0.5,0.2,0.2,0.05,0.05",
                "NEWSLENS_SQLITE_PATH": "",
            }
        )
        self.assertEqual(cfg.history_capacity, 50)
        self.assertEqual(cfg.recency_decay_days, 7.5)
        self.assertTrue(cfg.dedupe_suggestions)
        self.assertAlmostEqual(cfg.weights.semantic, 0.5)
        self.assertEqual(cfg.sqlite_path, "newslens.db")

    def test_weights_not_summing_to_one_are_rejected(self):
        with self.assertRaises(InvalidConfiguration):
            SearchConfig.from_env({"NEWSLENS_WEIGHTS": "0.5,0.5,0.5,0.0,0.0"})

    def test_malformed_values_are_rejected(self):
        for name, raw in (
            ("NEWSLENS_HISTORY_CAPACITY", "many"),
            ("NEWSLENS_DEDUPE_SUGGESTIONS", "maybe"),
            ("NEWSLENS_WEIGHTS", "0.5,0.5"),
            ("NEWSLENS_CORPUS", "postgres"),
        ):
            with self.subTest(name=name), self.assertRaises(InvalidConfiguration):
                SearchConfig.from_env({name: raw})

    def test_non_positive_limits_are_rejected(self):
        with self.assertRaises(InvalidConfiguration):
            SearchConfig(history_capacity=0)


class TestBuildDefaultContainer(unittest.TestCase):
    def test_wires_shared_trie_into_history(self):
        container = build_default_container(SearchConfig(history_capacity=5))
        self.assertIsInstance(container.corpus, InMemoryCorpus)
        self.assertIs(container.history._trie, container.trie)
        self.assertEqual(container.history._capacity, 5)

    def test_sqlite_corpus_from_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = SearchConfig(corpus="sqlite", sqlite_path=str(Path(tmp) / "news.db"))
            container = build_default_container(cfg)
            self.assertIsInstance(container.corpus, SqliteCorpusRepository)

    def test_explicit_corpus_wins(self):
        corpus = InMemoryCorpus()
        container = build_default_container(SearchConfig(corpus="sqlite"), corpus=corpus)
        self.assertIs(container.corpus, corpus)

    def test_invalid_decay_is_rejected(self):
        with self.assertRaises(InvalidConfiguration):
            build_default_container(SearchConfig(recency_decay_days=0))


if __name__ == "__main__":
    unittest.main()
