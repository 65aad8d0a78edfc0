"""Keyword indexer: turns document fields into positioned index entries.

Documents are indexed in memory and written to the shared index store by
:meth:`KeywordIndexer.commit`. A commit runs in a single transaction that

1. clears the whole document type (only for the first commit of an indexer
   built with ``new=True``),
2. deletes the previous entries of every re-indexed document (unless the
   indexer appends), and
3. inserts the pending keywords,

so readers see the index of a document type move from its old state to the
new one in one step.

Unindexed words are matched against the *stemmed* form of each token. Stop
lists are usually written in unstemmed form, so with an aggressive stemmer a
listed word can slip through; the behaviour is kept as is.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import logging
from types import TracebackType

from keyword_index.config import Settings
from keyword_index.domain.model import Document, Keyword, Term
from keyword_index.observability.context import indexing_context
from keyword_index.observability.metrics import (
    COMMIT_COUNT,
    COMMIT_LATENCY,
    DOCUMENTS_INDEXED,
    KEYWORDS_BUFFERED,
    KEYWORDS_COMMITTED,
    track_latency,
)
from keyword_index.observability.tracing import create_span
from keyword_index.registry import DocumentTypeRegistry
from keyword_index.search.analyzers import (
    Stemmer,
    get_default_stemmer,
    get_stemmer,
    stem_keyword,
    tokenize,
    truncate_keyword,
)
from keyword_index.search.normalizer import normalize_keywords
from keyword_index.search.stopwords import default_unindexed_words
from keyword_index.search.storage import AbstractKeywordStore, SqliteKeywordStore, StoreError
from keyword_index.spelling import SpellAssist, SpellChecker


logger = logging.getLogger(__name__)


class KeywordIndexer:
    """Index documents of one document type into the shared keyword index.

    Args:
        document_type: Shortname of a registered document type.
        store: Transactional store holding the index table.
        new: Clear every entry of the document type on the first commit.
        append: Add keywords next to the existing entries of re-indexed
            documents instead of replacing them.
        registry: Document type registry; defaults to one over ``store``.
        stemmer: Stemming backend; defaults to the one named in ``settings``
            or, without settings, the process default stemmer.
        settings: Optional settings providing ``max_word_length`` and the
            stemmer configuration.

    Raises:
        DocumentTypeError: If ``document_type`` is not registered.
        TypeError: If no ``registry`` is given and ``store`` is not a
            :class:`SqliteKeywordStore`, the only store that holds document types.
    """

    def __init__(
        self,
        document_type: str,
        store: AbstractKeywordStore,
        new: bool = False,
        append: bool = False,
        *,
        registry: DocumentTypeRegistry | None = None,
        stemmer: Stemmer | None = None,
        settings: Settings | None = None,
    ) -> None:
        if registry is None:
            if not isinstance(store, SqliteKeywordStore):
                raise TypeError(
                    f"{type(store).__name__} does not hold document types; pass registry= to resolve {document_type!r}"
                )
            registry = DocumentTypeRegistry(store)
        self.document_type = registry.resolve(document_type)
        self.document_type_name = document_type
        self.store = store
        self.new = new
        self.append = append

        if stemmer is None:
            if settings is not None:
                stemmer = get_stemmer(settings.stemmer, language=settings.stemmer_language)
            else:
                stemmer = get_default_stemmer()
        self.stemmer = stemmer

        self.max_word_length: int | None = None
        if settings is not None and settings.max_word_length is not None:
            self.set_max_word_length(settings.max_word_length)

        self._terms: list[Term] = []
        self._unindexed_words: set[str] = set()
        self._keywords: list[Keyword] = []
        self._clear_document_ids: dict[int, None] = {}
        self._spell_assist: SpellAssist | None = None

    # Configuration

    def set_max_word_length(self, length: int | None) -> None:
        """Set the maximum length of indexed words (``None`` for unbounded).

        Longer words are truncated after stemming.
        """
        if length is None:
            self.max_word_length = None
            return
        length = int(length)
        if length < 1:
            raise ValueError(f"max_word_length must be >= 1, got {length}")
        self.max_word_length = length

    def add_term(self, term: Term) -> None:
        """Index documents by ``term``; terms may carry different weights."""
        self._terms.append(term)

    @property
    def terms(self) -> tuple[Term, ...]:
        return tuple(self._terms)

    def add_unindexed_words(self, words: str | Iterable[str]) -> None:
        """Add words that are skipped by the indexer, such as 'the' or 'and'."""
        if isinstance(words, str):
            words = [words]
        self._unindexed_words.update(str(word) for word in words)

    @property
    def unindexed_words(self) -> frozenset[str]:
        return frozenset(self._unindexed_words)

    def set_spell_checker(self, checker: SpellChecker | None) -> None:
        """Record raw tokens the checker would correct (``None`` disables it)."""
        self._spell_assist = SpellAssist(checker) if checker is not None else None

    @property
    def spell_assist(self) -> SpellAssist | None:
        return self._spell_assist

    # Accumulator state

    @property
    def pending_keywords(self) -> tuple[Keyword, ...]:
        return tuple(self._keywords)

    @property
    def dirty_document_ids(self) -> frozenset[int]:
        """Documents whose stored entries are replaced by the next commit."""
        return frozenset(self._clear_document_ids)

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._keywords or self._clear_document_ids or self.new)

    # Indexing

    def index(self, document: Document) -> None:
        """Index a document for every term of this indexer.

        Locations start at 1 and keep counting across terms. Fields the
        document does not have are indexed as empty text.
        """
        document_id = document.document_id
        keywords: list[Keyword] = []
        location = 0

        for term in self._terms:
            text = normalize_keywords(document.get_field(term.data_field))
            for token in tokenize(text):
                keyword = self.stemmer.stem(token)

                if keyword not in self._unindexed_words:
                    location += 1
                    keywords.append(
                        Keyword(
                            word=truncate_keyword(keyword, self.max_word_length),
                            document_id=document_id,
                            weight=term.weight,
                            location=location,
                            document_type=self.document_type,
                        )
                    )

                if self._spell_assist is not None:
                    self._spell_assist.record_if_misspelled(token)

        if not self.append:
            self._clear_document_ids.setdefault(document_id, None)
        self._keywords.extend(keywords)

        DOCUMENTS_INDEXED.labels(document_type=self.document_type_name).inc()
        if keywords:
            KEYWORDS_BUFFERED.labels(document_type=self.document_type_name).inc(len(keywords))

    def index_many(self, documents: Iterable[Document]) -> int:
        """Index every document of ``documents``, returning how many were seen."""
        count = 0
        for document in documents:
            self.index(document)
            count += 1
        return count

    # Commit protocol

    def commit(self) -> None:
        """Write pending keywords to the index store in one transaction.

        On failure the transaction is rolled back, the pending state is kept
        so the commit can be retried, and :class:`StoreError` is raised.
        """
        clear_ids = list(self._clear_document_ids)
        rows = [keyword.as_row() for keyword in self._keywords]
        labels = {"document_type": self.document_type_name}

        span_attributes = {
            "keyword_index.document_type": self.document_type,
            "keyword_index.new": self.new,
            "keyword_index.clear_documents": len(clear_ids),
            "keyword_index.keywords": len(rows),
        }

        with indexing_context(self.document_type_name), create_span("keyword_index.commit", attributes=span_attributes):
            try:
                with track_latency(COMMIT_LATENCY, **labels), self.store.transaction() as store:
                    if self.new:
                        cleared = store.delete_document_type(self.document_type)
                        logger.info("Cleared %d entries for document type %s", cleared, self.document_type_name)

                    if clear_ids:
                        store.delete_documents(self.document_type, clear_ids)

                    store.insert_keywords(rows)
            except Exception as exc:
                COMMIT_COUNT.labels(**labels, outcome="rolled_back").inc()
                logger.exception("Commit rolled back for document type %s", self.document_type_name)
                if isinstance(exc, StoreError):
                    raise
                raise StoreError(f"Commit failed for document type {self.document_type_name}: {exc}") from exc

        self.new = False
        self._keywords.clear()
        self._clear_document_ids.clear()

        COMMIT_COUNT.labels(**labels, outcome="committed").inc()
        if rows:
            KEYWORDS_COMMITTED.labels(**labels).inc(len(rows))
        logger.info(
            "Committed %d keywords for %d documents of type %s",
            len(rows),
            len(clear_ids),
            self.document_type_name,
        )

    def clear(self) -> None:
        """Remove every entry of this indexer's document type from the index."""
        with self.store.transaction() as store:
            cleared = store.delete_document_type(self.document_type)
        logger.info("Cleared %d entries for document type %s", cleared, self.document_type_name)

    def __enter__(self) -> KeywordIndexer:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Commit on every exit path.

        When the block raised, a failing commit is logged and the block's
        exception is the one that propagates.
        """
        if exc_type is None:
            self.commit()
            return
        try:
            self.commit()
        except StoreError:
            logger.exception("Commit on exit failed after %s", exc_type.__name__)

    # Static helpers

    @staticmethod
    def normalize_keywords(text: str | None) -> str:
        return normalize_keywords(text)

    @staticmethod
    def stem_keyword(word: str) -> str:
        return stem_keyword(word)

    @staticmethod
    def default_unindexed_words() -> Sequence[str]:
        return default_unindexed_words()
