"""
Key-value persistence for the engine.

Cache entries, preference profiles, usage stats and the local recipe catalog
are all stored as JSON strings under a key. Store implementations raise
PersistenceError; ``load_json`` and ``save_json`` absorb those failures so no
caller ever sees one.
"""

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from ..errors import PersistenceError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal string key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any existing value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key. Missing keys are ignored."""


class SQLiteKeyValueStore(KeyValueStore):
    """KeyValueStore backed by a single sqlite table."""

    def __init__(self, db_dir: str = "data", filename: str = "pantry_chef.db"):
        Path(db_dir).mkdir(parents=True, exist_ok=True)
        self.db_path = str(Path(db_dir) / filename)
        self._init_database()

    def _init_database(self):
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not initialize {self.db_path}: {e}") from e
        logger.debug(f"[KV] Store initialized at {self.db_path}")

    def get(self, key: str) -> Optional[str]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                row = cursor.fetchone()
                return row[0] if row else None
        except sqlite3.Error as e:
            raise PersistenceError(f"Read of {key} failed: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, ?)
                    """,
                    (key, value, datetime.now().isoformat()),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Write of {key} failed: {e}") from e

    def remove(self, key: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Delete of {key} failed: {e}") from e


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self):
        with self._lock:
            return list(self._data.keys())


def load_json(store: KeyValueStore, key: str, default_factory: Callable[[], Any]) -> Any:
    """Read and decode a JSON value, falling back to ``default_factory()`` on any failure.

    A decoded value whose type differs from the default's is treated as corrupt.
    """
    try:
        raw = store.get(key)
    except PersistenceError as e:
        logger.warning(f"[KV] {e}; using default for {key}")
        return default_factory()

    if raw is None:
        return default_factory()

    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"[KV] Corrupt JSON under {key}: {e}; using default")
        return default_factory()

    default = default_factory()
    if not isinstance(value, type(default)):
        logger.warning(
            f"[KV] Expected {type(default).__name__} under {key}, "
            f"got {type(value).__name__}; using default"
        )
        return default
    return value


def save_json(store: KeyValueStore, key: str, value: Any) -> bool:
    """Encode and write a JSON value. Failures are logged and reported as False."""
    try:
        store.set(key, json.dumps(value))
        return True
    except (PersistenceError, TypeError, ValueError) as e:
        logger.warning(f"[KV] Could not save {key}: {e}")
        return False


def remove_key(store: KeyValueStore, key: str) -> bool:
    try:
        store.remove(key)
        return True
    except PersistenceError as e:
        logger.warning(f"[KV] Could not remove {key}: {e}")
        return False
