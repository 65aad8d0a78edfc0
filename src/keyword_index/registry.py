"""Document type registry backed by the index database.

Document types partition the shared keyword index. Every keyword row carries
the integer id of its type, which lets one query return mixed results (for
example products, categories and articles) ordered by relevance.

Types are managed through symbolic shortnames such as ``"products"`` and must
be created once, when a site is set up, before anything can be indexed under
them.
"""

from __future__ import annotations

import logging
import sqlite3

from keyword_index.search.storage import SqliteKeywordStore, StoreError


logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when an indexer cannot be configured as requested."""


class DocumentTypeError(ConfigurationError):
    """Raised when a document type shortname is not registered."""

    def __init__(self, message: str, shortname: str) -> None:
        super().__init__(message)
        self.shortname = shortname


class DocumentTypeRegistry:
    """Resolve document type shortnames to their integer identifiers."""

    def __init__(self, store: SqliteKeywordStore) -> None:
        self.store = store

    def get_document_type(self, shortname: str) -> int | None:
        """Return the id of ``shortname`` or ``None`` when it does not exist."""
        row = self._query("SELECT id FROM document_types WHERE shortname = ?", (str(shortname),)).fetchone()
        return int(row[0]) if row else None

    def resolve(self, shortname: str) -> int:
        """Return the id of ``shortname``.

        Raises:
            DocumentTypeError: If the type has not been created.
        """
        type_id = self.get_document_type(shortname)
        if type_id is None:
            raise DocumentTypeError(
                f"Document type {shortname} does not exist and cannot be indexed. "
                "Document types must be created before being used.",
                shortname,
            )
        return type_id

    def create_document_type(self, shortname: str) -> int:
        """Create a document type, returning its id.

        Creating a type that already exists returns the existing id.
        """
        shortname = str(shortname)
        existing = self.get_document_type(shortname)
        if existing is not None:
            return existing

        with self.store.transaction():
            cursor = self._query("INSERT INTO document_types (shortname) VALUES (?)", (shortname,))
        logger.info("Created document type %s (id=%s)", shortname, cursor.lastrowid)
        return int(cursor.lastrowid)

    def remove_document_type(self, shortname: str) -> None:
        """Remove a document type.

        Entries already indexed under the type stay in the index table; after
        removal no new indexer can be created for it.
        """
        with self.store.transaction():
            cursor = self._query("DELETE FROM document_types WHERE shortname = ?", (str(shortname),))
        if cursor.rowcount:
            logger.info("Removed document type %s", shortname)

    def get_document_types(self) -> list[str]:
        """Return every registered shortname, ordered by id."""
        cursor = self._query("SELECT shortname FROM document_types ORDER BY id")
        return [row[0] for row in cursor.fetchall()]

    def _query(self, sql: str, params: tuple[object, ...] = ()) -> sqlite3.Cursor:
        try:
            return self.store.connection.execute(sql, params)
        except sqlite3.Error as exc:
            raise StoreError(f"Document type query failed: {exc}") from exc
