"""
SQLite-backed document store.

Documents are JSON objects stored per (collection, key). Transactions take the
database write lock up front (BEGIN IMMEDIATE), so concurrent transactions
touching the same user record are serialized; a transaction that cannot get
the lock within the busy timeout is retried with a short backoff.
"""

import json
import sqlite3
import threading
import time
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, TypeVar

from vyra.logging_config import get_logger
from vyra.storage.base import SERVER_TIMESTAMP, Increment
from vyra.utils.exceptions import PersistenceError

logger = get_logger(__name__)

T = TypeVar("T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    key TEXT NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (collection, key)
);
CREATE TABLE IF NOT EXISTS store_meta (
    name TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_CONTENTION_MARKERS = ("database is locked", "database is busy", "database table is locked")
_BACKOFF_SECONDS = 0.05


def _is_contention(error: sqlite3.OperationalError) -> bool:
    """Return True if the error means another writer holds the lock."""
    message = str(error).lower()
    return any(marker in message for marker in _CONTENTION_MARKERS)


def _format_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO-8601 so stored timestamps sort lexicographically."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _resolve_fields(
    data: dict[str, Any], existing: dict[str, Any], timestamp: Callable[[], str]
) -> dict[str, Any]:
    """Replace Increment and SERVER_TIMESTAMP values with concrete ones."""
    resolved: dict[str, Any] = {}
    for name, value in data.items():
        if isinstance(value, Increment):
            current = existing.get(name) or 0
            resolved[name] = current + value.amount
        elif value is SERVER_TIMESTAMP:
            resolved[name] = timestamp()
        else:
            resolved[name] = value
    return resolved


class SQLiteTransaction:
    """Transaction handle for SQLiteDocumentStore.run_transaction."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._writes: list[tuple[str, str, dict[str, Any], bool]] = []

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        return _read_document(self._conn, collection, key)

    def set(
        self, collection: str, key: str, data: dict[str, Any], *, merge: bool = False
    ) -> None:
        self._writes.append((collection, key, dict(data), merge))

    def insert(self, collection: str, data: dict[str, Any]) -> str:
        key = uuid.uuid4().hex
        self._writes.append((collection, key, dict(data), False))
        return key

    def apply(self) -> None:
        """Write buffered documents; called inside the open SQLite transaction."""
        for collection, key, data, merge in self._writes:
            _write_document(self._conn, collection, key, data, merge)


def _read_document(conn: sqlite3.Connection, collection: str, key: str) -> dict[str, Any] | None:
    row = conn.execute(
        "SELECT data FROM documents WHERE collection = ? AND key = ?",
        (collection, key),
    ).fetchone()
    if row is None:
        return None
    return json.loads(row[0])


def _next_timestamp(conn: sqlite3.Connection) -> str:
    """Return a write time strictly greater than any previously assigned one."""
    now = datetime.now(timezone.utc)
    row = conn.execute("SELECT value FROM store_meta WHERE name = 'last_timestamp'").fetchone()
    if row is not None:
        last = datetime.fromisoformat(row[0])
        if now <= last:
            now = last + timedelta(microseconds=1)
    value = _format_timestamp(now)
    conn.execute(
        "INSERT INTO store_meta (name, value) VALUES ('last_timestamp', ?) "
        "ON CONFLICT(name) DO UPDATE SET value = excluded.value",
        (value,),
    )
    return value


def _write_document(
    conn: sqlite3.Connection, collection: str, key: str, data: dict[str, Any], merge: bool
) -> None:
    existing = _read_document(conn, collection, key) or {}
    resolved = _resolve_fields(data, existing, lambda: _next_timestamp(conn))
    document = {**existing, **resolved} if merge else resolved
    conn.execute(
        "INSERT INTO documents (collection, key, data) VALUES (?, ?, ?) "
        "ON CONFLICT(collection, key) DO UPDATE SET data = excluded.data",
        (collection, key, json.dumps(document)),
    )


class SQLiteDocumentStore:
    """DocumentStore backed by a single SQLite file."""

    def __init__(
        self,
        db_path: str | Path = "vyra.db",
        *,
        busy_timeout: float = 1.0,
        max_attempts: int = 5,
    ) -> None:
        """Initialize the store with a database path.

        Args:
            db_path: Path to SQLite database file
            busy_timeout: Seconds a connection waits for the write lock before failing
            max_attempts: Default transaction attempts before PersistenceError
        """
        self.db_path = str(db_path)
        self.busy_timeout = busy_timeout
        self.max_attempts = max_attempts
        self._init_lock = threading.Lock()
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly.
        return sqlite3.connect(self.db_path, timeout=self.busy_timeout, isolation_level=None)

    def initialize(self) -> None:
        with self._init_lock:
            if self._initialized:
                return
            try:
                conn = self._connect()
                try:
                    conn.executescript(_SCHEMA)
                finally:
                    conn.close()
            except sqlite3.Error as e:
                raise PersistenceError(
                    f"Failed to initialize store at {self.db_path}: {e}", original_error=e
                ) from e
            self._initialized = True
            logger.debug("Store initialized path=%s", self.db_path)

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        try:
            conn = self._connect()
            try:
                return _read_document(conn, collection, key)
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to read {collection}/{key}: {e}", original_error=e
            ) from e

    def set(
        self, collection: str, key: str, data: dict[str, Any], *, merge: bool = False
    ) -> None:
        def write(tx: SQLiteTransaction) -> None:
            tx.set(collection, key, data, merge=merge)

        self.run_transaction(write)

    def query(
        self,
        collection: str,
        where: dict[str, Any],
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        sql = "SELECT key, data FROM documents WHERE collection = ?"
        params: list[Any] = [collection]
        for name, value in where.items():
            sql += " AND json_extract(data, ?) = ?"
            params.extend([f"$.{name}", value])
        if order_by:
            sql += " ORDER BY json_extract(data, ?)" + (" DESC" if descending else " ASC")
            params.append(f"$.{order_by}")
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        try:
            conn = self._connect()
            try:
                rows = conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to query {collection}: {e}", original_error=e) from e
        return [{"id": key, **json.loads(data)} for key, data in rows]

    def run_transaction(
        self, fn: Callable[[SQLiteTransaction], T], *, max_attempts: int | None = None
    ) -> T:
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        last_error: sqlite3.OperationalError | None = None
        for attempt in range(1, attempts + 1):
            try:
                conn = self._connect()
            except sqlite3.Error as e:
                raise PersistenceError(
                    f"Failed to open store at {self.db_path}: {e}", original_error=e
                ) from e
            try:
                conn.execute("BEGIN IMMEDIATE")
                tx = SQLiteTransaction(conn)
                result = fn(tx)
                tx.apply()
                conn.execute("COMMIT")
                if attempt > 1:
                    logger.debug("Transaction committed on attempt %d", attempt)
                return result
            except sqlite3.OperationalError as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                if not _is_contention(e):
                    raise PersistenceError(
                        f"Transaction failed: {e}", attempts=attempt, original_error=e
                    ) from e
                last_error = e
                logger.debug("Transaction contention on attempt %d/%d: %s", attempt, attempts, e)
            except sqlite3.Error as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise PersistenceError(
                    f"Transaction failed: {e}", attempts=attempt, original_error=e
                ) from e
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            finally:
                conn.close()
            if attempt < attempts:
                time.sleep(_BACKOFF_SECONDS * attempt)

        raise PersistenceError(
            f"Transaction aborted after {attempts} attempts due to contention.",
            attempts=attempts,
            original_error=last_error,
        )
