import time

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode, Tracer
from starlette.types import ASGIApp, Receive, Scope, Send

from servicekit.tracing import TRACER_NAME, span_scope, start_span


# ---------------------------------------------------------------------------
# Middleware (pure ASGI, runs in the request task so ContextVars propagate)
# ---------------------------------------------------------------------------

class SpanContextMiddleware:
    """
    Pure ASGI middleware that opens one server span per HTTP request and
    makes it the root of the request's span-context stack, so every
    traceable service call made by the handler nests under it.

    Adds two response headers:

    - ``X-Response-Time-Ms``: wall-clock time for the entire request.
    - ``X-Trace-Id``: hex id of the request's trace.

    Unlike ``BaseHTTPMiddleware``, this does NOT spawn a child asyncio
    task for the inner application, so the span pushed here is visible to
    the endpoint through the ``ContextVar``.
    """

    def __init__(self, app: ASGIApp, tracer: Tracer | None = None) -> None:
        self.app = app
        self.tracer = tracer or trace.get_tracer(TRACER_NAME)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        span = start_span(self.tracer, f"HTTP {scope.get('method', 'GET')} {scope.get('path', '/')}")
        span.set_attribute("http.method", scope.get("method", "GET"))
        span.set_attribute("http.route", scope.get("path", "/"))
        ctx = span.get_span_context()
        trace_id = f"{ctx.trace_id:032x}" if ctx.trace_id else ""
        start = time.perf_counter()

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                status_code = message["status"]
                span.set_attribute("http.status_code", status_code)
                if status_code >= 500:
                    span.set_status(Status(StatusCode.ERROR, f"HTTP {status_code}"))
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                if trace_id:
                    headers.append((b"x-trace-id", trace_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            with span_scope(span):
                await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
        finally:
            span.end()
