"""Unit tests for the transactional SQLite keyword store."""

from pathlib import Path

import pytest

from keyword_index.search.storage import SqliteKeywordStore, StoreError, validate_table_name


def _rows(document_type: int, document_id: int, *words: str, weight: int = 1):
    return [(document_id, word, weight, location, document_type) for location, word in enumerate(words, start=1)]


@pytest.mark.unit
class TestSchema:
    def test_creates_tables_and_indexes(self, store):
        names = {
            row[0]
            for row in store.connection.execute("SELECT name FROM sqlite_master WHERE type IN ('table', 'index')")
        }
        assert {"document_types", "keyword_index", "idx_keyword_index_type_document", "idx_keyword_index_word"} <= names

    def test_custom_table_name(self, tmp_path: Path):
        with SqliteKeywordStore(tmp_path / "custom.sqlite", index_table="site_keywords") as custom:
            custom.insert_keywords(_rows(1, 1, "fox"))
            assert custom.count_keywords(1) == 1

    @pytest.mark.parametrize("name", ["", "1table", "drop table;", "a-b"])
    def test_rejects_invalid_table_names(self, name):
        with pytest.raises(ValueError):
            validate_table_name(name)

    def test_in_memory_database(self):
        with SqliteKeywordStore(":memory:") as memory_store:
            assert memory_store.db_path == ":memory:"
            assert memory_store.insert_keywords(_rows(1, 1, "fox", "dog")) == 2
            assert memory_store.count_keywords(1) == 2

    def test_reopens_existing_database(self, tmp_path: Path):
        path = tmp_path / "nested" / "index.sqlite"
        with SqliteKeywordStore(path) as first:
            first.insert_keywords(_rows(1, 1, "fox"))
        with SqliteKeywordStore(path) as second:
            assert second.fetch_keywords(1) == [(1, "fox", 1, 1, 1)]


@pytest.mark.unit
class TestWrites:
    def test_insert_and_fetch_ordered_by_document_and_location(self, store):
        store.insert_keywords(_rows(1, 2, "lazy", "dog") + _rows(1, 1, "quick", "fox", weight=10))
        assert store.fetch_keywords(1) == [
            (1, "quick", 10, 1, 1),
            (1, "fox", 10, 2, 1),
            (2, "lazy", 1, 1, 1),
            (2, "dog", 1, 2, 1),
        ]
        assert store.fetch_keywords(1, document_id=2) == [(2, "lazy", 1, 1, 1), (2, "dog", 1, 2, 1)]

    def test_insert_nothing(self, store):
        assert store.insert_keywords([]) == 0

    def test_delete_documents_is_scoped_by_type(self, store):
        store.insert_keywords(_rows(1, 5, "fox") + _rows(2, 5, "fox") + _rows(1, 6, "dog"))
        assert store.delete_documents(1, [5]) == 1
        assert store.count_keywords(1, document_id=5) == 0
        assert store.count_keywords(2, document_id=5) == 1
        assert store.count_keywords(1, document_id=6) == 1

    def test_delete_documents_in_chunks(self, store):
        rows = [(document_id, "word", 1, 1, 1) for document_id in range(1, 1201)]
        store.insert_keywords(rows)
        assert store.delete_documents(1, range(1, 1201)) == 1200
        assert store.count_keywords(1) == 0

    def test_delete_document_type(self, store):
        store.insert_keywords(_rows(1, 1, "a", "b") + _rows(2, 1, "c"))
        assert store.delete_document_type(1) == 2
        assert store.count_keywords(1) == 0
        assert store.count_keywords(2) == 1

    def test_sqlite_errors_become_store_errors(self, store):
        store.connection.execute("DROP TABLE keyword_index")
        with pytest.raises(StoreError):
            store.insert_keywords(_rows(1, 1, "fox"))
        with pytest.raises(StoreError):
            store.delete_document_type(1)


@pytest.mark.unit
class TestTransaction:
    def test_commits_on_clean_exit(self, store, tmp_path: Path):
        with store.transaction() as tx:
            tx.insert_keywords(_rows(1, 1, "fox"))
        with SqliteKeywordStore(tmp_path / "index.sqlite") as reader:
            assert reader.count_keywords(1) == 1

    def test_rolls_back_on_exception(self, store):
        store.insert_keywords(_rows(1, 1, "old"))
        with pytest.raises(RuntimeError, match="boom"):
            with store.transaction() as tx:
                tx.delete_documents(1, [1])
                tx.insert_keywords(_rows(1, 1, "new"))
                raise RuntimeError("boom")
        assert store.fetch_keywords(1) == [(1, "old", 1, 1, 1)]
        assert not store.connection.in_transaction

    def test_nested_transaction_rejected(self, store):
        with store.transaction():
            with pytest.raises(StoreError, match="already open"):
                with store.transaction():
                    pass

    def test_usable_after_rollback(self, store):
        with pytest.raises(ValueError):
            with store.transaction():
                raise ValueError("first")
        with store.transaction() as tx:
            tx.insert_keywords(_rows(1, 1, "fox"))
        assert store.count_keywords(1) == 1
