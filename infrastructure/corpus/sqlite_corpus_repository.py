"""SQLite-backed corpus of cached news articles."""
from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from domain.entities import Document, SourceStatistic, as_utc
from domain.interfaces import CorpusGateway

_COLUMNS = (
    "id, title, summary, content, url, source, published_at, keywords, "
    "sentiment_score, sentiment_label, is_bookmarked"
)


def _to_utc_text(moment: datetime) -> str:
    return as_utc(moment).isoformat()


class SqliteCorpusRepository(CorpusGateway):
    """Stores articles per user in a light SQLite database.

    The search core only reads through the ``fetch_*`` methods; ``add`` exists
    to seed the database from scripts and tests.
    """

    def __init__(self, db_path: str | Path = "newslens.db", *, timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path, timeout=self._timeout)

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS news_articles (
                    id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    summary TEXT NOT NULL DEFAULT '',
                    content TEXT NOT NULL DEFAULT '',
                    url TEXT NOT NULL DEFAULT '',
                    source TEXT NOT NULL DEFAULT '',
                    published_at TEXT NOT NULL,
                    keywords TEXT NOT NULL DEFAULT '[]',
                    sentiment_score REAL NOT NULL DEFAULT 0.0,
                    sentiment_label TEXT NOT NULL DEFAULT 'neutral',
                    is_bookmarked INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (id, user_id)
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_news_user_published ON news_articles(user_id, published_at)"
            )

    def add(self, document: Document, user_id: str) -> None:
        with self._connect() as conn:
            conn.execute(
                f"""
                REPLACE INTO news_articles (user_id, {_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    document.id,
                    document.title,
                    document.summary,
                    document.content,
                    document.url,
                    document.source,
                    _to_utc_text(document.published_at),
                    json.dumps(list(document.keywords)),
                    document.sentiment_score,
                    document.sentiment_label,
                    int(document.is_bookmarked),
                ),
            )

    def fetch_documents(self, user_id: str, limit: int) -> list[Document]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_COLUMNS} FROM news_articles
                WHERE user_id = ?
                ORDER BY published_at DESC, id ASC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def fetch_date_range(self, user_id: str, start: datetime, end: datetime, limit: int) -> list[Document]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_COLUMNS} FROM news_articles
                WHERE user_id = ? AND published_at >= ? AND published_at <= ?
                ORDER BY published_at DESC, id ASC
                LIMIT ?
                """,
                (user_id, _to_utc_text(start), _to_utc_text(end), limit),
            ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def fetch_source_statistics(self, user_id: str, limit: int) -> list[SourceStatistic]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT source, COUNT(*) AS article_count FROM news_articles
                WHERE user_id = ? AND source != ''
                GROUP BY source
                ORDER BY article_count DESC, source ASC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        return [SourceStatistic(source=row[0], count=row[1]) for row in rows]

    @staticmethod
    def _row_to_document(row: tuple) -> Document:
        return Document(
            id=row[0],
            title=row[1],
            summary=row[2] or "",
            content=row[3] or "",
            url=row[4] or "",
            source=row[5] or "",
            published_at=datetime.fromisoformat(row[6]),
            keywords=tuple(json.loads(row[7] or "[]")),
            sentiment_score=float(row[8]),
            sentiment_label=row[9] or "neutral",
            is_bookmarked=bool(row[10]),
        )


__all__ = ["SqliteCorpusRepository"]
