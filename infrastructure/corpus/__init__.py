from infrastructure.corpus.in_memory_corpus import InMemoryCorpus
from infrastructure.corpus.sqlite_corpus_repository import SqliteCorpusRepository

__all__ = [
    "InMemoryCorpus",
    "SqliteCorpusRepository",
]
