"""Domain layer - value objects with no infrastructure dependencies.

- Term: a (field, weight) pair configured on an indexer
- Keyword: a positioned, weighted word produced for one document
- Document: the read-only capability the indexer consumes
"""

from keyword_index.domain.model import Document, Keyword, KeywordRow, MappingDocument, Term


__all__ = [
    "Document",
    "Keyword",
    "KeywordRow",
    "MappingDocument",
    "Term",
]
