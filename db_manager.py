# db_manager.py
# Durable state-value table with a write-through in-memory cache.
# Reads never touch SQLite. Writes hit SQLite first and reach the cache only after commit.

import sqlite3
import threading
import os
import logging

from errors import StorageError

thread_local = threading.local()
logger = logging.getLogger("QValueStore")

TABLE_NAME = "qvalues"
UPSERT_SQL = f'INSERT OR REPLACE INTO {TABLE_NAME} (State, Value) VALUES (?, ?)'


def get_db_connection(db_path):
    """Returns this thread's connection to `db_path`, opening it on first use."""
    if not hasattr(thread_local, 'connections'):
        thread_local.connections = {}
    key = os.path.abspath(db_path)
    conn = thread_local.connections.get(key)
    if conn is None:
        parent = os.path.dirname(key)
        os.makedirs(parent, exist_ok=True)
        conn = sqlite3.connect(key, timeout=10)
        conn.execute('PRAGMA journal_mode=WAL;')
        conn.execute('PRAGMA synchronous=FULL;')
        thread_local.connections[key] = conn
    return conn


def close_db_connection(db_path):
    connections = getattr(thread_local, 'connections', {})
    conn = connections.pop(os.path.abspath(db_path), None)
    if conn is not None:
        conn.close()


class QValueStore:
    """
    Keyed scalar value estimates backed by a single SQLite table.

    The whole table is loaded into the cache on construction. A single lock
    serializes every cache mutation together with its durable write, so on
    success the cache and the table agree, and on failure the cache still holds
    what was last committed.
    """
    def __init__(self, db_path="othello_qvalues.db"):
        self.db_path = db_path
        self._cache = {}
        self._lock = threading.Lock()
        self._init_db()
        self._load_to_cache()

    def _init_db(self):
        with get_db_connection(self.db_path) as conn:
            conn.execute(f'''
                CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                    State TEXT PRIMARY KEY,
                    Value REAL
                )
            ''')

    def _load_to_cache(self):
        conn = get_db_connection(self.db_path)
        rows = conn.execute(f'SELECT State, Value FROM {TABLE_NAME}').fetchall()
        with self._lock:
            self._cache = {state: float(value) for state, value in rows}
        logger.info(f"Loaded {len(rows)} Q-values from {self.db_path}.")

    def get(self, key) -> float:
        with self._lock:
            return self._cache.get(key, 0.0)

    def set(self, key, value):
        with self._lock:
            try:
                value = _as_row(key, value)[1]
                with get_db_connection(self.db_path) as conn:
                    conn.execute(UPSERT_SQL, (key, value))
            except (sqlite3.Error, TypeError, ValueError) as e:
                logger.error(f"Failed to write Q-value for state {key!r}, cache left unchanged. Error: {e}")
                raise StorageError("Q-value write failed", {"state": key}) from e
            self._cache[key] = value

    def batch_set(self, mapping) -> int:
        """Writes every entry in one transaction. All or nothing, in the table and in the cache."""
        if not mapping:
            return 0
        with self._lock:
            committed = {}
            try:
                with get_db_connection(self.db_path) as conn:
                    for key, value in mapping.items():
                        row = _as_row(key, value)
                        conn.execute(UPSERT_SQL, row)
                        committed[row[0]] = row[1]
            except (sqlite3.Error, TypeError, ValueError) as e:
                logger.error(f"Batch of {len(mapping)} Q-values failed, transaction rolled back. Error: {e}")
                raise StorageError("Q-value batch write failed", {"size": len(mapping)}) from e
            self._cache.update(committed)
            return len(committed)

    def clear(self):
        """Drops every entry from the table and the cache."""
        with self._lock:
            try:
                with get_db_connection(self.db_path) as conn:
                    conn.execute(f'DELETE FROM {TABLE_NAME}')
            except sqlite3.Error as e:
                logger.error(f"Failed to clear Q-value table. Error: {e}")
                raise StorageError("Q-value table clear failed", {"path": self.db_path}) from e
            self._cache.clear()
        logger.info(f"Cleared all Q-values in {self.db_path}.")

    def count(self) -> int:
        with self._lock:
            return len(self._cache)

    def snapshot(self) -> dict:
        """A copy of the cache, for inspection."""
        with self._lock:
            return dict(self._cache)

    def close(self):
        close_db_connection(self.db_path)


def _as_row(key, value):
    if not isinstance(key, str):
        raise TypeError(f"State key must be a string, got {type(key).__name__}")
    return key, float(value)
