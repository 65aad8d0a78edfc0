"""Unit tests for domain value objects."""

from dataclasses import FrozenInstanceError

from pydantic import ValidationError
import pytest

from keyword_index.domain import Document, Keyword, MappingDocument, Term


@pytest.mark.unit
class TestTerm:
    def test_weight_defaults_to_one(self):
        assert Term(data_field="title").weight == 1

    def test_field_name_required(self):
        with pytest.raises(ValidationError):
            Term(data_field="")

    def test_immutable(self):
        term = Term(data_field="title", weight=10)
        with pytest.raises(FrozenInstanceError):
            term.weight = 2


@pytest.mark.unit
class TestKeyword:
    def test_as_row_layout(self):
        keyword = Keyword(word="fox", document_id=7, weight=10, location=2, document_type=3)
        assert keyword.as_row() == (7, "fox", 10, 2, 3)

    def test_locations_start_at_one(self):
        with pytest.raises(ValidationError):
            Keyword(word="fox", document_id=7, weight=10, location=0, document_type=3)


@pytest.mark.unit
class TestMappingDocument:
    def test_field_access(self):
        document = MappingDocument(7, {"title": "Quick Fox", "price": 12.5, "body": None})
        assert document.get_field("title") == "Quick Fox"
        assert document.get_field("price") == "12.5"
        assert document.get_field("body") is None
        assert document.get_field("missing") is None

    def test_satisfies_document_protocol(self):
        assert isinstance(MappingDocument(1), Document)
