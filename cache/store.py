"""
cache/store.py -- SQLite-backed read-through cache with tag invalidation.

Stores JSON-serializable read results under a key, labelled with a tag.
Entries expire after a TTL (default 1 hour), and every entry carrying a tag
can be dropped in one call when the underlying data changes:

Usage:
    cache = TagCache()
    data = cache.get("issues:all")            # returns the cached value or None
    cache.set("issues:all", rows, tag="issues")
    cache.invalidate_tag("issues")            # after any write to issues
    gen = cache.generation("issues")          # read before computing a value ...
    cache.set("issues:all", rows, tag="issues", generation=gen)  # ... skipped if a write intervened
    cache.purge_expired()                     # call periodically to trim old entries

Pass db_path=":memory:" for a process-local cache (tests).
"""

import json
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Optional, Union

_DEFAULT_DB = Path(__file__).parent / "issuetracker_cache.db"
_DEFAULT_TTL = 60 * 60  # 1 hour in seconds

_DDL = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key         TEXT PRIMARY KEY,
    tag         TEXT NOT NULL,
    data        TEXT NOT NULL,
    cached_at   REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_cache_entries_tag ON cache_entries (tag);
CREATE TABLE IF NOT EXISTS cache_tags (
    tag         TEXT PRIMARY KEY,
    generation  INTEGER NOT NULL
);
"""


class TagCache:
    def __init__(self, db_path: Union[Path, str] = _DEFAULT_DB, ttl: int = _DEFAULT_TTL) -> None:
        self.ttl = ttl
        # One connection shared across the threadpool; the lock serializes use of it.
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_DDL)
        self._conn.commit()

    def get(self, key: str) -> Optional[Any]:
        """Return cached data for key if it exists and hasn't expired."""
        with self._lock:
            row = self._conn.execute(
                "SELECT data, cached_at FROM cache_entries WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        data, cached_at = row
        if time.time() - cached_at > self.ttl:
            self._delete(key)
            return None
        return json.loads(data)

    def generation(self, tag: str) -> int:
        """Return the invalidation counter for tag. Starts at 0, bumped by invalidate_tag()."""
        with self._lock:
            return self._generation(tag)

    def set(self, key: str, data: Any, tag: str, generation: Optional[int] = None) -> bool:
        """Store data for key under tag, replacing any existing entry.

        With generation, the write is skipped when tag has been invalidated
        since that generation was read. Returns whether the entry was stored.
        """
        with self._lock:
            if generation is not None and self._generation(tag) != generation:
                return False
            self._conn.execute(
                "INSERT OR REPLACE INTO cache_entries (key, tag, data, cached_at) VALUES (?, ?, ?, ?)",
                (key, tag, json.dumps(data), time.time()),
            )
            self._conn.commit()
        return True

    def invalidate_tag(self, tag: str) -> int:
        """Drop every entry labelled with tag. Returns number of rows removed."""
        with self._lock:
            cursor = self._conn.execute("DELETE FROM cache_entries WHERE tag = ?", (tag,))
            self._conn.execute(
                "INSERT INTO cache_tags (tag, generation) VALUES (?, 1) "
                "ON CONFLICT(tag) DO UPDATE SET generation = generation + 1",
                (tag,),
            )
            self._conn.commit()
        return cursor.rowcount

    def purge_expired(self) -> int:
        """Delete all entries older than TTL. Returns number of rows removed."""
        cutoff = time.time() - self.ttl
        with self._lock:
            cursor = self._conn.execute("DELETE FROM cache_entries WHERE cached_at < ?", (cutoff,))
            self._conn.commit()
        return cursor.rowcount

    def _generation(self, tag: str) -> int:
        row = self._conn.execute("SELECT generation FROM cache_tags WHERE tag = ?", (tag,)).fetchone()
        return row[0] if row is not None else 0

    def _delete(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            self._conn.commit()

    def close(self) -> None:
        self._conn.close()
