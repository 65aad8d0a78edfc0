"""Log correlation context: trace ids plus the document type being indexed."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4


log_context: ContextVar[dict | None] = ContextVar("keyword_index_log_context", default=None)


def generate_trace_id() -> str:
    """Generate a 32-char hex trace ID."""
    return uuid4().hex


def generate_span_id() -> str:
    """Generate a 16-char hex span ID."""
    return uuid4().hex[:16]


def get_trace_context() -> dict:
    """Get the current context, creating trace and span ids on first use."""
    ctx = log_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {**(ctx or {}), "trace_id": generate_trace_id(), "span_id": generate_span_id()}
        log_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    log_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def update_span_id(span_id: str) -> None:
    """Update span_id while preserving everything else."""
    ctx = log_context.get() or {}
    log_context.set({**ctx, "span_id": span_id})


@contextmanager
def indexing_context(document_type: str) -> Iterator[dict]:
    """Attach ``document_type`` to every log record emitted inside the block."""
    ctx = get_trace_context()
    token = log_context.set({**ctx, "document_type": document_type})
    try:
        yield log_context.get() or {}
    finally:
        log_context.reset(token)
