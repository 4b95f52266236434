import sqlite3
import threading
from pathlib import Path
from typing import List, Optional

from blindbid.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent storage.

    A bucketed key-value table keyed by (bucket, key). Writes are INSERT OR
    REPLACE, so the last write for a key within a bucket wins.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()
        self._all_conns: List[sqlite3.Connection] = []
        self._conns_lock = threading.Lock()
        self._closed = False

        # Ensure directory exists
        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if self._closed:
            raise RuntimeError(f"SQLiteAdapter for {self.db_path} is closed")
        if not hasattr(self._conn_local, "conn"):
            conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            conn.row_factory = sqlite3.Row
            # Enable WAL mode for better concurrency
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn_local.conn = conn
            with self._conns_lock:
                self._all_conns.append(conn)
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    bucket TEXT NOT NULL DEFAULT 'default',
                    key TEXT NOT NULL,
                    value BLOB NOT NULL,
                    PRIMARY KEY (bucket, key)
                )
            """)

    # =========================================================================
    # Key-Value Operations
    # =========================================================================

    def put(self, key: str, value: bytes, bucket: str = "default"):
        """Save a key-value pair."""
        conn = self._get_conn()
        with conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, bucket) VALUES (?, ?, ?)",
                (key, value, bucket)
            )

    def get(self, key: str, bucket: str = "default") -> Optional[bytes]:
        """Get value by key."""
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT value FROM kv_store WHERE key = ? AND bucket = ?", (key, bucket)
        )
        row = cursor.fetchone()
        return row["value"] if row else None

    def keys(self, bucket: str = "default") -> List[str]:
        """All keys in a bucket, in key order."""
        conn = self._get_conn()
        cursor = conn.execute("SELECT key FROM kv_store WHERE bucket = ? ORDER BY key", (bucket,))
        return [row["key"] for row in cursor]

    def delete(self, key: str, bucket: str = "default"):
        conn = self._get_conn()
        with conn:
            conn.execute("DELETE FROM kv_store WHERE key = ? AND bucket = ?", (key, bucket))

    def close(self):
        """Close every connection opened by this adapter."""
        with self._conns_lock:
            for conn in self._all_conns:
                conn.close()
            self._all_conns.clear()
        self._closed = True
        logger.debug(f"Closed SQLite store at {self.db_path}")
