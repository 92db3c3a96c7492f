import math
import threading
import unittest

from application.services.tfidf_index import TFIDFIndex
from domain.entities import Document
from domain.exceptions import IndexBuildFailure


def _corpus() -> list[Document]:
    return [
        Document(id="a", title="Tesla stock surges"),
        Document(id="b", title="Market crash fears"),
        Document(id="c", title="Stock market update", summary="Tesla leads", content="Analysts expect more"),
    ]


class TestTFIDFIndex(unittest.TestCase):
    def test_empty_corpus_scores_zero(self):
        index = TFIDFIndex()
        index.build([])
        self.assertEqual(len(index), 0)
        self.assertEqual(index.score("a", ["tesla"]), 0.0)

    def test_weight_is_term_frequency_times_log_idf(self):
        index = TFIDFIndex()
        index.build(_corpus()[:2])
        vector = index.vector("a")
        self.assertAlmostEqual(vector["tesla"], (1 / 3) * math.log(2))
        self.assertEqual(index.document_frequency["tesla"], 1)

    def test_term_present_everywhere_has_zero_weight(self):
        index = TFIDFIndex()
        index.build([Document(id="x", title="news today"), Document(id="y", title="news later")])
        self.assertEqual(index.vector("x")["news"], 0.0)

    def test_title_summary_and_content_are_indexed(self):
        index = TFIDFIndex()
        index.build(_corpus())
        vector = index.vector("c")
        for term in ("stock", "market", "update", "tesla", "leads", "analysts", "expect", "more"):
            self.assertIn(term, vector)

    def test_score_averages_over_query_terms(self):
        index = TFIDFIndex()
        index.build(_corpus()[:2])
        expected = ((1 / 3) * math.log(2) * 2) / 2
        self.assertAlmostEqual(index.score("a", ["tesla", "stock"]), expected)
        self.assertAlmostEqual(index.score("a", ["tesla", "unknown"]), (1 / 3) * math.log(2) / 2)

    def test_score_is_zero_for_missing_document_or_empty_query(self):
        index = TFIDFIndex()
        index.build(_corpus())
        self.assertEqual(index.score("missing", ["tesla"]), 0.0)
        self.assertEqual(index.score("a", []), 0.0)
        self.assertEqual(index.score("b", ["tesla"]), 0.0)

    def test_rebuild_on_same_snapshot_is_identical(self):
        first = TFIDFIndex()
        first.build(_corpus())
        snapshot = {doc.id: dict(first.vector(doc.id)) for doc in _corpus()}
        frequencies = dict(first.document_frequency)

        first.build(_corpus())
        self.assertEqual({doc.id: dict(first.vector(doc.id)) for doc in _corpus()}, snapshot)
        self.assertEqual(dict(first.document_frequency), frequencies)
        self.assertEqual(first.generation, 2)

    def test_rebuild_replaces_previous_generation(self):
        index = TFIDFIndex()
        index.build(_corpus())
        index.build([Document(id="z", title="Fresh headline")])
        self.assertNotIn("a", index)
        self.assertIn("z", index)
        self.assertNotIn("tesla", index.document_frequency)

    def test_non_text_fields_fail_the_build(self):
        index = TFIDFIndex()
        index.build(_corpus())
        with self.assertRaises(IndexBuildFailure):
            index.build([Document(id="bad", title=None)])  # type: ignore[arg-type]
        self.assertIn("a", index)

    def test_built_snapshot_survives_later_rebuilds(self):
        index = TFIDFIndex()
        snapshot = index.build(_corpus())
        expected = snapshot.score("a", ["tesla", "stock"])

        index.build([Document(id="z", title="Fresh headline")])

        self.assertNotIn("a", index)
        self.assertIn("a", snapshot)
        self.assertEqual(snapshot.score("a", ["tesla", "stock"]), expected)
        self.assertEqual(snapshot.generation, 1)
        self.assertEqual(index.snapshot.generation, 2)

    def test_readers_see_whole_generations_during_rebuilds(self):
        index = TFIDFIndex()
        first = _corpus()
        second = [Document(id=f"z{i}", title=f"Fresh headline number{i}") for i in range(5)]
        index.build(first)
        sizes = set()

        def rebuild() -> None:
            for i in range(200):
                index.build(second if i % 2 else first)

        def read() -> None:
            for _ in range(500):
                sizes.add(len(index.snapshot))

        threads = [threading.Thread(target=rebuild), threading.Thread(target=read), threading.Thread(target=read)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertLessEqual(sizes, {len(first), len(second)})
        self.assertEqual(index.generation, 201)


if __name__ == "__main__":
    unittest.main()
