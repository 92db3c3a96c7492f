"""Run searches against a SQLite news corpus from the command line."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from application.orchestrator import SearchOrchestrator
from domain.entities import Document, SearchFilter
from domain.exceptions import SearchError
from infrastructure.config import SearchConfig
from infrastructure.corpus.sqlite_corpus_repository import SqliteCorpusRepository
from infrastructure.logging_utils import setup_logging

logger = logging.getLogger("search_cli")


def _print_document(document: Document, score: float | None = None) -> None:
    prefix = f"{score:.3f} " if score is not None else ""
    print(f"{prefix}[{document.source}] {document.title} ({document.published_at:%Y-%m-%d}) id={document.id}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--db", help="Path to the SQLite corpus (default: NEWSLENS_SQLITE_PATH or newslens.db)")
    parser.add_argument("--user", default="default", help="User whose corpus is searched")
    subparsers = parser.add_subparsers(dest="command", required=True)

    semantic = subparsers.add_parser("search", help="Free-text relevance search")
    semantic.add_argument("query")
    semantic.add_argument("--limit", type=int, default=20)
    semantic.add_argument("--threshold", type=float, default=0.1)

    filtered = subparsers.add_parser("filter", help="Structured filtering")
    filtered.add_argument("--query")
    filtered.add_argument("--source", action="append", dest="sources")
    filtered.add_argument("--bookmarked", action="store_true", default=None)
    filtered.add_argument("--limit", type=int, default=20)

    complete = subparsers.add_parser("suggest", help="Autocomplete a prefix")
    complete.add_argument("prefix")
    complete.add_argument("--limit", type=int, default=10)

    seed = subparsers.add_parser("import", help="Load articles from a JSON list into the corpus")
    seed.add_argument("path", type=Path)
    return parser.parse_args(argv)


def _load_articles(path: Path) -> list[Document]:
    records = json.loads(path.read_text(encoding="utf-8"))
    documents = []
    for record in records:
        record = dict(record)
        record["published_at"] = datetime.fromisoformat(record["published_at"])
        record["keywords"] = tuple(record.get("keywords", ()))
        documents.append(Document(**record))
    return documents


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    args = parse_args(argv)
    config = SearchConfig.from_env()
    if args.db:
        config.sqlite_path = args.db
    corpus = SqliteCorpusRepository(config.sqlite_path)
    orchestrator = SearchOrchestrator.from_config(config, corpus=corpus)

    try:
        if args.command == "import":
            documents = _load_articles(args.path)
            for document in documents:
                corpus.add(document, args.user)
            print(f"Imported {len(documents)} articles for {args.user}")
        elif args.command == "search":
            result = orchestrator.semantic_search(args.query, args.user, limit=args.limit, threshold=args.threshold)
            print(f"{result.total_count} matches in {result.duration_ms:.1f} ms")
            for item in result.results:
                _print_document(item.document, item.score)
        elif args.command == "filter":
            search_filter = SearchFilter(
                query=args.query,
                sources=args.sources,
                is_bookmarked=args.bookmarked,
                limit=args.limit,
            )
            result = orchestrator.filter_search(search_filter, args.user)
            print(f"{result.total_count} matches of {result.metadata['original_count']}")
            for document in result.results:
                _print_document(document)
        elif args.command == "suggest":
            for suggestion in orchestrator.suggest(args.prefix, args.user, limit=args.limit):
                print(f"{suggestion.type.value:<10} {suggestion.text} ({suggestion.frequency})")
    except SearchError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
