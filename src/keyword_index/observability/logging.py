"""Structured JSON logging with trace and document type correlation."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
import logging
from pathlib import Path
import sys
from typing import IO, Any

import orjson

from keyword_index.observability.context import get_trace_context


# Attributes every LogRecord carries; anything else was passed through ``extra=``
_RECORD_ATTRIBUTES = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

_QUIET_LOGGERS = ("opentelemetry", "prometheus_client")


def _encode_fallback(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        try:
            return sorted(value)
        except TypeError:
            return list(value)
    if isinstance(value, (Path, BaseException)):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return repr(value)


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object.

    Besides level, logger and message, an entry carries the current trace and
    span ids, the document type of an enclosing ``indexing_context`` and any
    ``extra=`` attributes. Extras named like credentials are masked.
    """

    REDACT_KEYS = frozenset({"password", "token", "api_key", "secret", "authorization"})
    MAX_MESSAGE_LEN = 2000
    MAX_EXTRA_LEN = 500

    def __init__(self, static_fields: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self.static_fields = dict(static_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        entry = self._base_entry(record)
        entry.update(self._context_fields())
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(self._extra_fields(record))
        return orjson.dumps(entry, default=_encode_fallback).decode("utf-8")

    def _base_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        entry: dict[str, Any] = {
            **self.static_fields,
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "source": f"{record.module}:{record.lineno}",
            "message": self._clip(record.getMessage(), self.MAX_MESSAGE_LEN),
        }
        _, _, component = record.name.rpartition(".")
        if component and component != record.name:
            entry["component"] = component
        return entry

    @staticmethod
    def _context_fields() -> dict[str, Any]:
        ctx = get_trace_context()
        fields = {"trace_id": ctx.get("trace_id", ""), "span_id": ctx.get("span_id", "")}
        if ctx.get("document_type"):
            fields["document_type"] = ctx["document_type"]
        return fields

    def _extra_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        extras: dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in _RECORD_ATTRIBUTES or key.startswith("_"):
                continue
            if key.lower() in self.REDACT_KEYS:
                extras[key] = "[REDACTED]"
            elif isinstance(value, str):
                extras[key] = self._clip(value, self.MAX_EXTRA_LEN)
            else:
                extras[key] = value
        return extras

    @staticmethod
    def _clip(text: str, limit: int) -> str:
        return text if len(text) <= limit else text[:limit] + "..."


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    *,
    logger_levels: dict[str, str] | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Install a single handler on the root logger.

    Args:
        level: Root log level name, case insensitive.
        json_output: Use :class:`JsonFormatter` instead of a plain text line.
        logger_levels: Per-logger level overrides (logger name -> level name).
        stream: Output stream, stdout by default.
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter({"service": "keyword-index"}))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name, logger_level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(_resolve_level(logger_level))


def _resolve_level(name: str) -> int:
    resolved = logging.getLevelName(name.upper())
    return resolved if isinstance(resolved, int) else logging.INFO
