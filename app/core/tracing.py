"""Per-request correlation context.

The request ID and the W3C `traceparent` live in contextvars for the duration
of a request. They are bound into structlog's context, echoed back on the
response, and forwarded on outbound calls (the JWKS fetch).
"""

import uuid
from contextvars import ContextVar

import structlog

REQUEST_ID_HEADER = "X-Request-ID"
TRACEPARENT_HEADER = "traceparent"

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
trace_parent_ctx: ContextVar[str | None] = ContextVar("trace_parent", default=None)


def bind_request_context(request_id: str | None, trace_parent: str | None = None) -> str:
    """Start a request's correlation context; returns the effective request ID."""
    request_id = request_id or str(uuid.uuid4())
    request_id_ctx.set(request_id)
    trace_parent_ctx.set(trace_parent or None)
    structlog.contextvars.bind_contextvars(request_id=request_id)
    return request_id


def clear_request_context() -> None:
    request_id_ctx.set(None)
    trace_parent_ctx.set(None)
    structlog.contextvars.unbind_contextvars("request_id")


def current_request_id() -> str | None:
    return request_id_ctx.get()


def get_tracing_headers() -> dict[str, str]:
    """Correlation headers for outbound HTTP requests."""
    headers = {}
    if request_id := request_id_ctx.get():
        headers[REQUEST_ID_HEADER] = request_id
    if trace_parent := trace_parent_ctx.get():
        headers[TRACEPARENT_HEADER] = trace_parent
    return headers
