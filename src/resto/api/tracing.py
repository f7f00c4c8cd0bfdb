from __future__ import annotations

from resto.api.middleware.request_id import get_request_id
from resto.application.use_cases.context import TraceContext
from resto.infrastructure.observability.otel import current_trace_id


def trace_context() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())
