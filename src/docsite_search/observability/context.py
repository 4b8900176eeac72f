"""Per-context trace metadata attached to every JSON log line.

Values live in a ContextVar, so queries running on different threads or tasks
keep separate ids. ``create_span`` binds the active OpenTelemetry span; without
tracing the ids are random but stable for the context.
"""

from __future__ import annotations

from contextvars import ContextVar
from uuid import uuid4


# trace_id, span_id and optional extras such as the active docs version
trace_context: ContextVar[dict | None] = ContextVar("trace_context", default=None)


def generate_trace_id() -> str:
    """Generate a 32-char hex trace ID."""
    return uuid4().hex


def generate_span_id() -> str:
    """Generate a 16-char hex span ID."""
    return uuid4().hex[:16]


def get_trace_context() -> dict:
    """Return the current metadata, minting ids on first use."""
    ctx = trace_context.get()
    if not ctx or not ctx.get("trace_id"):
        ctx = {**(ctx or {}), "trace_id": generate_trace_id(), "span_id": generate_span_id()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def update_span_id(span_id: str, trace_id: str | None = None) -> None:
    """Point the context at a new span; the trace id changes only when given."""
    ctx = dict(trace_context.get() or {})
    ctx["span_id"] = span_id
    if trace_id:
        ctx["trace_id"] = trace_id
    trace_context.set(ctx)


def bind_version(version: str) -> None:
    """Tag later log lines from this context with the active documentation version."""
    trace_context.set({**get_trace_context(), "version": version})
