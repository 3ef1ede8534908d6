"""
SQLite-backed avatar cache.

Stores Gravatar lookup results keyed by the literal email address so that
repeated runs do not fetch the same avatar again. "No avatar" is stored as
its own row state, distinct from "never looked up".
"""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from gcontact_gravatar.sync.avatar import AvatarResult

SCHEMA = """
CREATE TABLE IF NOT EXISTS avatar_cache (
    email TEXT PRIMARY KEY,
    found BOOLEAN NOT NULL,
    image BLOB,
    fetched_at TEXT NOT NULL
);
"""


class AvatarCacheStore:
    """
    SQLite store for avatar lookup results.

    Usage:
        cache = AvatarCacheStore('/path/to/avatar_cache.db')
        cache.initialize()

        cache.set('someone@example.com', AvatarResult.absent())
        cache.get('someone@example.com')   # AvatarResult.absent()
        cache.get('unknown@example.com')   # None

        # Or use in-memory for testing:
        cache = AvatarCacheStore(':memory:')
        cache.initialize()
    """

    def __init__(self, db_path: str):
        """
        Initialize the cache store.

        Args:
            db_path: Path to SQLite database file, or ':memory:' for an
                     in-memory cache that lasts as long as this object
        """
        self.db_path = db_path
        self._shared_connection: Optional[sqlite3.Connection] = None

    def _get_connection(self) -> sqlite3.Connection:
        """
        Get a database connection.

        In-memory databases share one connection so the schema persists;
        file databases get a new connection each time.
        """
        if self.db_path == ":memory:":
            if self._shared_connection is None:
                self._shared_connection = sqlite3.connect(":memory:")
                self._shared_connection.row_factory = sqlite3.Row
            return self._shared_connection

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.

        Commits on success, rolls back on error.

        Yields:
            sqlite3.Connection: Database connection
        """
        conn = self._get_connection()
        is_shared = self.db_path == ":memory:"
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            if not is_shared:
                conn.close()

    def initialize(self) -> None:
        """Create the cache table, and its parent directory for file databases."""
        if self.db_path != ":memory:":
            Path(self.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    def get(self, email: str) -> Optional[AvatarResult]:
        """
        Get the cached lookup result for an email address.

        Args:
            email: Email address exactly as it was cached

        Returns:
            AvatarResult, or None if the address was never looked up
        """
        with self.connection() as conn:
            row = conn.execute(
                "SELECT found, image FROM avatar_cache WHERE email = ?", (email,)
            ).fetchone()
        if row is None:
            return None
        if row["found"]:
            return AvatarResult.present(row["image"] or b"")
        return AvatarResult.absent()

    def set(self, email: str, result: AvatarResult) -> None:
        """
        Store a lookup result, replacing any previous one.

        Args:
            email: Email address exactly as given to the resolver
            result: Lookup outcome
        """
        image = sqlite3.Binary(result.data) if result.found else None
        with self.connection() as conn:
            conn.execute(
                """
                INSERT INTO avatar_cache (email, found, image, fetched_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(email) DO UPDATE SET
                    found = excluded.found,
                    image = excluded.image,
                    fetched_at = excluded.fetched_at
                """,
                (
                    email,
                    result.found,
                    image,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )

    def get_stats(self) -> dict[str, int]:
        """
        Count cached entries.

        Returns:
            Dictionary with 'total', 'present' and 'absent' counts
        """
        with self.connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total, "
                "COALESCE(SUM(CASE WHEN found THEN 1 ELSE 0 END), 0) AS present "
                "FROM avatar_cache"
            ).fetchone()
        total = row["total"]
        present = row["present"]
        return {"total": total, "present": present, "absent": total - present}

    def clear(self) -> int:
        """
        Remove every cached entry.

        Only the operator's "cache clear" command uses this; sync runs never
        delete entries.

        Returns:
            Number of entries removed
        """
        with self.connection() as conn:
            cursor = conn.execute("DELETE FROM avatar_cache")
            return cursor.rowcount

    def close(self) -> None:
        """Close the shared in-memory connection, if any."""
        if self._shared_connection is not None:
            self._shared_connection.close()
            self._shared_connection = None
