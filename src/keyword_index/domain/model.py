"""Domain model - value objects flowing through the indexing pipeline.

Terms describe which document field is indexed and how strongly, keywords are
the positioned occurrences produced for a single document, and documents are
anything that exposes an integer identifier plus named text fields.

Uses Pydantic dataclasses so terms and keywords are validated at construction
and stay immutable once created.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass as std_dataclass, field
from typing import Annotated, Protocol, runtime_checkable

from pydantic import Field
from pydantic.dataclasses import dataclass


KeywordRow = tuple[int, str, int, int, int]
"""Store row layout: (document_id, word, weight, location, document_type)."""


@dataclass(frozen=True)
class Term:
    """A document field to index together with its scoring weight."""

    data_field: Annotated[str, Field(min_length=1)]
    weight: int = 1


@dataclass(frozen=True)
class Keyword:
    """One stored occurrence of a normalized word in a document.

    ``location`` is the 1-based position of the word among the indexed
    tokens of the document, counted across every term of the indexer.
    """

    word: str
    document_id: int
    weight: int
    location: Annotated[int, Field(ge=1)]
    document_type: int

    def as_row(self) -> KeywordRow:
        return (self.document_id, self.word, self.weight, self.location, self.document_type)


@runtime_checkable
class Document(Protocol):
    """Capability required from anything handed to the indexer."""

    @property
    def document_id(self) -> int:  # pragma: no cover - interface definition
        ...

    def get_field(self, name: str) -> str | None:  # pragma: no cover - interface definition
        ...


@std_dataclass(frozen=True, slots=True)
class MappingDocument:
    """Document backed by a plain mapping of field name to text."""

    document_id: int
    fields: Mapping[str, object] = field(default_factory=dict)

    def get_field(self, name: str) -> str | None:
        value = self.fields.get(name)
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)
