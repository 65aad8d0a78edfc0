"""Transactional storage for the shared keyword index.

Every document type writes into one index table; rows are partitioned by the
``document_type`` column so deletes must always be scoped by it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection, Iterable, Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
import logging
from pathlib import Path
import re
import sqlite3

from keyword_index.domain.model import KeywordRow
from keyword_index.search.sqlite_pragmas import apply_write_pragmas


logger = logging.getLogger(__name__)

DEFAULT_INDEX_TABLE = "keyword_index"

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Keeps IN (...) lists below SQLITE_MAX_VARIABLE_NUMBER on older builds
_DELETE_CHUNK_SIZE = 500


class StoreError(RuntimeError):
    """Raised when the index store fails to read or write."""


def validate_table_name(name: str) -> str:
    if not _IDENTIFIER_PATTERN.match(name):
        raise ValueError(f"Invalid index table name: {name!r}")
    return name


class AbstractKeywordStore(ABC):
    """Operations the commit protocol needs from the shared index store."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[AbstractKeywordStore]:
        """Context manager: commit on clean exit, roll back on any exception."""
        raise NotImplementedError

    @abstractmethod
    def delete_document_type(self, document_type: int) -> int:
        """Delete every entry of a document type, returning the row count."""
        raise NotImplementedError

    @abstractmethod
    def delete_documents(self, document_type: int, document_ids: Collection[int]) -> int:
        """Delete entries of the given documents within one document type."""
        raise NotImplementedError

    @abstractmethod
    def insert_keywords(self, rows: Iterable[KeywordRow]) -> int:
        """Insert keyword rows, returning the number written."""
        raise NotImplementedError


class SqliteKeywordStore(AbstractKeywordStore):
    """SQLite implementation of the shared index store.

    The connection runs in autocommit mode and transactions are opened
    explicitly with ``BEGIN IMMEDIATE`` so a commit holds the write lock from
    its first delete to its last insert.
    """

    def __init__(self, db_path: str | Path, *, index_table: str = DEFAULT_INDEX_TABLE) -> None:
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self.index_table = validate_table_name(index_table)
        self._conn: sqlite3.Connection | None = None
        self._in_transaction = False
        self._initialize_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = self._connect()
        return self._conn

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(self.db_path, isolation_level=None, check_same_thread=False)
            apply_write_pragmas(conn)
        except sqlite3.Error as exc:
            raise StoreError(f"Unable to open index database at {self.db_path}: {exc}") from exc
        return conn

    def _initialize_schema(self) -> None:
        table = self.index_table
        try:
            self.connection.executescript(
                f"""
                CREATE TABLE IF NOT EXISTS document_types (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    shortname TEXT NOT NULL UNIQUE
                );
                CREATE TABLE IF NOT EXISTS {table} (
                    document_id INTEGER NOT NULL,
                    word TEXT NOT NULL,
                    weight INTEGER NOT NULL,
                    location INTEGER NOT NULL,
                    document_type INTEGER NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_{table}_type_document ON {table}(document_type, document_id);
                CREATE INDEX IF NOT EXISTS idx_{table}_word ON {table}(word, document_type);
                """
            )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to create index schema: {exc}") from exc

    @contextmanager
    def transaction(self) -> Iterator[SqliteKeywordStore]:
        if self._in_transaction:
            raise StoreError("A transaction is already open on this store")

        conn = self.connection
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to begin transaction: {exc}") from exc

        self._in_transaction = True
        try:
            yield self
        except BaseException:
            self._rollback(conn)
            raise
        else:
            try:
                conn.execute("COMMIT")
            except sqlite3.Error as exc:
                self._rollback(conn)
                raise StoreError(f"Failed to commit transaction: {exc}") from exc
        finally:
            self._in_transaction = False

    def _rollback(self, conn: sqlite3.Connection) -> None:
        if not conn.in_transaction:
            return
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as exc:
            logger.warning("Rollback failed for %s: %s", self.db_path, exc)

    def _execute(self, sql: str, params: Sequence[object] = ()) -> sqlite3.Cursor:
        try:
            return self.connection.execute(sql, params)
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    def delete_document_type(self, document_type: int) -> int:
        cursor = self._execute(f"DELETE FROM {self.index_table} WHERE document_type = ?", (document_type,))
        return cursor.rowcount

    def delete_documents(self, document_type: int, document_ids: Collection[int]) -> int:
        ids = list(document_ids)
        deleted = 0
        for start in range(0, len(ids), _DELETE_CHUNK_SIZE):
            chunk = ids[start : start + _DELETE_CHUNK_SIZE]
            placeholders = ", ".join("?" for _ in chunk)
            cursor = self._execute(
                f"DELETE FROM {self.index_table} WHERE document_id IN ({placeholders}) AND document_type = ?",
                (*chunk, document_type),
            )
            deleted += cursor.rowcount
        return deleted

    def insert_keywords(self, rows: Iterable[KeywordRow]) -> int:
        batch = list(rows)
        if not batch:
            return 0
        try:
            self.connection.executemany(
                f"INSERT INTO {self.index_table} (document_id, word, weight, location, document_type) "
                "VALUES (?, ?, ?, ?, ?)",
                batch,
            )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to insert keywords: {exc}") from exc
        return len(batch)

    def count_keywords(self, document_type: int, document_id: int | None = None) -> int:
        if document_id is None:
            cursor = self._execute(f"SELECT COUNT(*) FROM {self.index_table} WHERE document_type = ?", (document_type,))
        else:
            cursor = self._execute(
                f"SELECT COUNT(*) FROM {self.index_table} WHERE document_type = ? AND document_id = ?",
                (document_type, document_id),
            )
        return int(cursor.fetchone()[0])

    def fetch_keywords(self, document_type: int, document_id: int | None = None) -> list[KeywordRow]:
        """Return stored rows ordered by document and location."""
        query = (
            f"SELECT document_id, word, weight, location, document_type FROM {self.index_table} "
            "WHERE document_type = ?"
        )
        params: tuple[int, ...] = (document_type,)
        if document_id is not None:
            query += " AND document_id = ?"
            params = (document_type, document_id)
        cursor = self._execute(query + " ORDER BY document_id, location, weight", params)
        return [tuple(row) for row in cursor.fetchall()]  # type: ignore[misc]

    def close(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            except sqlite3.Error as exc:
                logger.warning("Failed to close index database %s: %s", self.db_path, exc)
            self._conn = None

    def __enter__(self) -> SqliteKeywordStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
