"""Command line front end for managing document types and indexing documents."""

from __future__ import annotations

import argparse
from collections.abc import Iterator, Sequence
from dataclasses import asdict, dataclass
import logging
from pathlib import Path
import sys

import orjson
from pydantic import ValidationError

from keyword_index.config import Settings
from keyword_index.domain.model import MappingDocument, Term
from keyword_index.observability.logging import configure_logging
from keyword_index.registry import ConfigurationError, DocumentTypeRegistry
from keyword_index.search.analyzers import get_stemmer
from keyword_index.search.indexer import KeywordIndexer
from keyword_index.search.storage import SqliteKeywordStore, StoreError
from keyword_index.spelling import PySpellChecker


logger = logging.getLogger(__name__)


class DocumentLoadError(RuntimeError):
    """Raised when a JSON Lines document cannot be turned into a document."""


@dataclass(slots=True)
class IndexRunReport:
    """Summary printed after an ``index`` run."""

    document_type: str
    documents_indexed: int
    keywords_committed: int
    new: bool
    append: bool
    personal_wordlist: list[str]


def parse_term(value: str) -> Term:
    """Parse ``FIELD[:WEIGHT]`` into a term (weight defaults to 1)."""
    field_name, _, weight = value.partition(":")
    try:
        return Term(data_field=field_name, weight=int(weight) if weight else 1)
    except (ValueError, ValidationError) as exc:
        raise argparse.ArgumentTypeError(f"Invalid term {value!r}; expected FIELD[:WEIGHT]") from exc


def iter_documents(path: Path, *, id_field: str = "id") -> Iterator[MappingDocument]:
    """Yield documents from a JSON Lines file, one object per line."""
    with path.open("rb") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                payload = orjson.loads(line)
                document_id = int(payload[id_field])
            except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                raise DocumentLoadError(f"{path}:{line_number}: {exc}") from exc
            yield MappingDocument(document_id=document_id, fields=payload)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keyword-index",
        description="Manage document types and index documents into the shared keyword index",
    )
    parser.add_argument("--database", type=Path, help="SQLite index database (overrides settings)")
    parser.add_argument("--log-level", help="Logging level (overrides settings)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    types_parser = subparsers.add_parser("types", help="Manage document types")
    types_sub = types_parser.add_subparsers(dest="types_command", required=True)
    types_sub.add_parser("list", help="List registered document types")
    create_parser = types_sub.add_parser("create", help="Create a document type")
    create_parser.add_argument("shortname")
    remove_parser = types_sub.add_parser("remove", help="Remove a document type")
    remove_parser.add_argument("shortname")

    index_parser = subparsers.add_parser("index", help="Index a JSON Lines file of documents")
    index_parser.add_argument("document_type", help="Shortname of a registered document type")
    index_parser.add_argument("source", type=Path, help="JSON Lines file, one document per line")
    index_parser.add_argument(
        "--term",
        dest="terms",
        action="append",
        type=parse_term,
        required=True,
        metavar="FIELD[:WEIGHT]",
        help="Field to index with its weight; repeat for several fields",
    )
    index_parser.add_argument("--id-field", default="id", help="Field holding the integer document id")
    index_parser.add_argument("--new", action="store_true", help="Clear the document type before inserting")
    index_parser.add_argument("--append", action="store_true", help="Keep existing entries of indexed documents")
    index_parser.add_argument("--max-word-length", type=int, help="Truncate indexed words to this length")
    index_parser.add_argument("--stemmer", choices=["identity", "suffix", "snowball"], help="Stemming backend")
    index_parser.add_argument(
        "--no-default-stopwords",
        action="store_true",
        help="Do not skip the default list of unindexed words",
    )
    index_parser.add_argument(
        "--stopword",
        dest="stopwords",
        action="append",
        default=[],
        metavar="WORD",
        help="Additional word to skip; repeat for several words",
    )
    index_parser.add_argument("--spell-check", action="store_true", help="Record misspelled tokens")
    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.database is not None:
        overrides["database_path"] = args.database
    if args.log_level:
        overrides["log_level"] = args.log_level
    return Settings(**overrides)


def _run_types(args: argparse.Namespace, registry: DocumentTypeRegistry) -> int:
    if args.types_command == "list":
        for shortname in registry.get_document_types():
            print(shortname)
    elif args.types_command == "create":
        type_id = registry.create_document_type(args.shortname)
        print(f"{args.shortname} {type_id}")
    else:
        registry.remove_document_type(args.shortname)
    return 0


def run_index(args: argparse.Namespace, settings: Settings, store: SqliteKeywordStore) -> IndexRunReport:
    """Index ``args.source`` and commit, returning a summary of the run."""
    stemmer = get_stemmer(args.stemmer or settings.stemmer, language=settings.stemmer_language)
    indexer = KeywordIndexer(args.document_type, store, new=args.new, append=args.append, stemmer=stemmer)

    max_word_length = args.max_word_length if args.max_word_length is not None else settings.max_word_length
    indexer.set_max_word_length(max_word_length)
    for term in args.terms:
        indexer.add_term(term)
    if not args.no_default_stopwords:
        indexer.add_unindexed_words(settings.get_unindexed_words())
    indexer.add_unindexed_words(args.stopwords)
    if args.spell_check or settings.spell_check_enabled:
        indexer.set_spell_checker(
            PySpellChecker(settings.spell_check_language, personal_wordlist_path=settings.personal_wordlist_path)
        )

    with indexer:
        documents = indexer.index_many(iter_documents(args.source, id_field=args.id_field))
        keywords = len(indexer.pending_keywords)

    assist = indexer.spell_assist
    return IndexRunReport(
        document_type=args.document_type,
        documents_indexed=documents,
        keywords_committed=keywords,
        new=args.new,
        append=args.append,
        personal_wordlist=sorted(assist.personal_wordlist) if assist else [],
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = _load_settings(args)
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level, json_output=settings.log_json)

    try:
        with SqliteKeywordStore(settings.database_path, index_table=settings.index_table) as store:
            if args.command == "types":
                return _run_types(args, DocumentTypeRegistry(store))
            report = run_index(args, settings, store)
    except (ConfigurationError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    except (StoreError, DocumentLoadError, OSError) as exc:
        logger.error("Indexing failed: %s", exc)
        return 1

    payload = orjson.dumps(asdict(report), option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS)
    sys.stdout.write(payload.decode("utf-8") + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
