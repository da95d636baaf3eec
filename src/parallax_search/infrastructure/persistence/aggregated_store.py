"""
Aggregated Result Store

Durable home of AggregatedResultSets, over two relations:

    aggregated_results(id PK, query, keywords, orientation, quality_hint,
                       providers_used, created_at, expires_at, owner_user_id)
    result_items(id PK, agg_id FK -> aggregated_results, item_id, title, url,
                 thumbnail_url, source_url, source_domain, description,
                 width, height, file_size, mime_type, file_format,
                 origin_provider)

Items are read back in insertion order (rowid), which is the ranked order,
so a page is a plain LIMIT/OFFSET query. Every backend failure surfaces as
CacheError; callers treat it as a miss.

Uses stdlib sqlite3; ``":memory:"`` (the default) keeps the store in-process.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from parallax_search.core.exceptions import CacheError
from parallax_search.domain.entities import AggregatedResultSet, ImageResult, Orientation

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS aggregated_results (
    id TEXT PRIMARY KEY,
    query TEXT NOT NULL,
    keywords TEXT,
    orientation TEXT,
    quality_hint TEXT,
    providers_used TEXT,
    created_at TEXT NOT NULL,
    expires_at TEXT NOT NULL,
    owner_user_id TEXT
);

CREATE TABLE IF NOT EXISTS result_items (
    id TEXT PRIMARY KEY,
    agg_id TEXT NOT NULL,
    item_id TEXT,
    title TEXT,
    url TEXT,
    thumbnail_url TEXT,
    source_url TEXT,
    source_domain TEXT,
    description TEXT,
    width INTEGER,
    height INTEGER,
    file_size INTEGER,
    mime_type TEXT,
    file_format TEXT,
    origin_provider TEXT,
    FOREIGN KEY (agg_id) REFERENCES aggregated_results(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_agg_id ON result_items(agg_id);
CREATE INDEX IF NOT EXISTS idx_expires_at ON aggregated_results(expires_at);
CREATE INDEX IF NOT EXISTS idx_user_query ON aggregated_results(owner_user_id, query);
"""

_ITEM_COLUMNS = (
    "item_id, title, url, thumbnail_url, source_url, source_domain, description, "
    "width, height, file_size, mime_type, file_format, origin_provider"
)


@dataclass(frozen=True)
class StoredAggregation:
    """Header row of a persisted aggregated set (items are read page by page)."""

    fingerprint: str
    query: str
    orientation: Orientation
    quality_hint: str | None
    providers_used: list[str]
    created_at: datetime
    expires_at: datetime
    owner_user_id: str | None
    total_results: int

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at


class BaseAggregatedResultStore(ABC):
    """Structured store contract consumed by the aggregator."""

    @abstractmethod
    def find(self, fingerprint: str) -> StoredAggregation | None:
        """Header of the set stored under *fingerprint*, live or not."""

    @abstractmethod
    def page(self, fingerprint: str, offset: int, limit: int) -> list[ImageResult]:
        """Items ``[offset, offset + limit)`` in persisted order."""

    @abstractmethod
    def save(self, result_set: AggregatedResultSet) -> None:
        """Persist *result_set*, replacing any set under the same fingerprint."""

    @abstractmethod
    def delete_user(self, user_id: str) -> int:
        """Drop every set owned by *user_id*; return how many."""

    @abstractmethod
    def delete_expired(self, now: datetime) -> int:
        """Drop every set whose ``expires_at`` has passed; return how many."""

    @abstractmethod
    def suggestions(self, prefix: str, user_id: str, limit: int = 10) -> list[str]:
        """Distinct stored queries of *user_id* starting with *prefix*."""


def _row_to_item(row: sqlite3.Row) -> ImageResult:
    return ImageResult(
        id=row["item_id"] or "",
        title=row["title"] or "",
        image_url=row["url"],
        thumbnail_url=row["thumbnail_url"] or "",
        source_page_url=row["source_url"] or "",
        source_domain=row["source_domain"] or "",
        description=row["description"] or "",
        width=row["width"] or 0,
        height=row["height"] or 0,
        byte_size=row["file_size"],
        mime_type=row["mime_type"] or "image/jpeg",
        file_format=row["file_format"] or "jpg",
        origin_provider=row["origin_provider"] or "",
    )


class SqliteAggregatedResultStore(BaseAggregatedResultStore):
    """
    SQLite-backed aggregated result store.

    Example:
        store = SqliteAggregatedResultStore(":memory:")
        store.save(result_set)
        header = store.find(result_set.fingerprint)
        first_page = store.page(result_set.fingerprint, offset=0, limit=10)
    """

    def __init__(self, db_path: Path | str = ":memory:") -> None:
        path = str(db_path)
        if path != ":memory:":
            resolved = Path(path).expanduser()
            resolved.parent.mkdir(parents=True, exist_ok=True)
            path = str(resolved)
        self._db_path = path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON")
        if path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    def find(self, fingerprint: str) -> StoredAggregation | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT * FROM aggregated_results WHERE id = ?", (fingerprint,)
                ).fetchone()
                if row is None:
                    return None
                total = self._conn.execute(
                    "SELECT COUNT(*) FROM result_items WHERE agg_id = ?", (fingerprint,)
                ).fetchone()[0]
        except sqlite3.Error as e:
            raise CacheError(f"Failed to read aggregated set {fingerprint}: {e}", operation="find") from e

        try:
            return StoredAggregation(
                fingerprint=row["id"],
                query=row["query"],
                orientation=Orientation.parse(row["orientation"]),
                quality_hint=row["quality_hint"],
                providers_used=json.loads(row["providers_used"] or "[]"),
                created_at=datetime.fromisoformat(row["created_at"]),
                expires_at=datetime.fromisoformat(row["expires_at"]),
                owner_user_id=row["owner_user_id"],
                total_results=total,
            )
        except (ValueError, TypeError) as e:
            raise CacheError(f"Corrupt aggregated set {fingerprint}: {e}", operation="find") from e

    def page(self, fingerprint: str, offset: int, limit: int) -> list[ImageResult]:
        try:
            with self._lock:
                rows = self._conn.execute(
                    f"SELECT {_ITEM_COLUMNS} FROM result_items WHERE agg_id = ? "
                    "ORDER BY rowid ASC LIMIT ? OFFSET ?",
                    (fingerprint, limit, offset),
                ).fetchall()
        except sqlite3.Error as e:
            raise CacheError(f"Failed to page aggregated set {fingerprint}: {e}", operation="page") from e
        return [_row_to_item(row) for row in rows]

    def save(self, result_set: AggregatedResultSet) -> None:
        fingerprint = result_set.fingerprint
        header = (
            fingerprint,
            result_set.query,
            ",".join(result_set.keywords),
            result_set.orientation.value if result_set.orientation.is_set else None,
            result_set.quality_hint,
            json.dumps(result_set.providers_used),
            result_set.created_at.isoformat(timespec="microseconds"),
            result_set.expires_at.isoformat(timespec="microseconds"),
            result_set.owner_user_id,
        )
        items = [
            (
                f"{fingerprint}:{position}",
                fingerprint,
                item.id,
                item.title,
                item.image_url,
                item.thumbnail_url,
                item.source_page_url,
                item.source_domain,
                item.description,
                item.width,
                item.height,
                item.byte_size,
                item.mime_type,
                item.file_format,
                item.origin_provider,
            )
            for position, item in enumerate(result_set.results)
        ]
        try:
            # One transaction: a failure leaves the previous state untouched
            with self._lock, self._conn:
                self._conn.execute("DELETE FROM result_items WHERE agg_id = ?", (fingerprint,))
                self._conn.execute(
                    "INSERT OR REPLACE INTO aggregated_results "
                    "(id, query, keywords, orientation, quality_hint, providers_used, "
                    "created_at, expires_at, owner_user_id) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    header,
                )
                self._conn.executemany(
                    f"INSERT INTO result_items (id, agg_id, {_ITEM_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    items,
                )
        except sqlite3.Error as e:
            raise CacheError(f"Failed to persist aggregated set {fingerprint}: {e}", operation="save") from e
        logger.debug(f"Persisted aggregated set {fingerprint} with {len(items)} items")

    def delete_user(self, user_id: str) -> int:
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(
                    "DELETE FROM aggregated_results WHERE owner_user_id = ?", (user_id,)
                )
        except sqlite3.Error as e:
            raise CacheError(f"Failed to clear sets of user {user_id}: {e}", operation="delete_user") from e
        return cursor.rowcount

    def delete_expired(self, now: datetime) -> int:
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(
                    "DELETE FROM aggregated_results WHERE expires_at <= ?",
                    (now.isoformat(timespec="microseconds"),),
                )
        except sqlite3.Error as e:
            raise CacheError(f"Failed to delete expired sets: {e}", operation="delete_expired") from e
        return cursor.rowcount

    def suggestions(self, prefix: str, user_id: str, limit: int = 10) -> list[str]:
        if not prefix or not user_id:
            return []
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        try:
            with self._lock:
                rows = self._conn.execute(
                    "SELECT DISTINCT query FROM aggregated_results "
                    "WHERE owner_user_id = ? AND query LIKE ? ESCAPE '\\' "
                    "ORDER BY query ASC LIMIT ?",
                    (user_id, f"{escaped}%", limit),
                ).fetchall()
        except sqlite3.Error as e:
            raise CacheError(f"Failed to load suggestions: {e}", operation="suggestions") from e
        return [row["query"] for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()
