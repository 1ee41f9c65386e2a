"""
Span tracing for service methods.

Nesting is tracked with a span-context stack: the ordered tuple of spans
currently open in *this* logical call chain.  The stack lives in a
``ContextVar``, so every asyncio task works on its own copy and two
concurrent requests can never adopt each other's spans as parents.

Every push is paired with a pop in a ``finally`` block; the stack depth
after a traced call always equals the depth before it, whether the call
returned, raised or was cancelled.
"""
import functools
import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode, Tracer

from servicekit.config import Settings
from servicekit.params import invoke

logger = logging.getLogger(__name__)

TRACER_NAME = "servicekit"

TRACED_MARKER = "__traced__"

_span_context: ContextVar[tuple[Span, ...]] = ContextVar("span_context", default=())

_provider: TracerProvider | None = None


# ---------------------------------------------------------------------------
# Provider bootstrap
# ---------------------------------------------------------------------------

def configure_tracing(settings: Settings) -> Tracer:
    """
    Install a global ``TracerProvider`` described by *settings* and return
    a tracer from it.

    Spans are exported over OTLP/HTTP when ``EXPORTER_URL`` is set and
    printed to stdout when ``CONSOLE_SPANS`` is true.  Idempotent: later
    calls reuse the first provider.
    """
    global _provider
    if _provider is None:
        resource = Resource.create({
            "service.name": settings.SERVICE_NAME,
            "application": settings.APPLICATION_NAME,
        })
        provider = TracerProvider(resource=resource)
        if settings.EXPORTER_URL:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

            provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.EXPORTER_URL)))
        if settings.CONSOLE_SPANS:
            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(provider)
        _provider = provider
        logger.info("Tracing configured: service=%s exporter=%r", settings.SERVICE_NAME, settings.EXPORTER_URL)
    return trace.get_tracer(TRACER_NAME)


# ---------------------------------------------------------------------------
# Span-context stack
# ---------------------------------------------------------------------------

def current_span_stack() -> tuple[Span, ...]:
    """Spans open in the current logical call chain, innermost last."""
    return _span_context.get()


def start_span(tracer: Tracer, name: str) -> Span:
    """Start *name* as a child of the innermost open span, or as a root."""
    stack = _span_context.get()
    if stack:
        return tracer.start_span(name, context=trace.set_span_in_context(stack[-1]))
    return tracer.start_span(name)


@contextmanager
def span_scope(span: Span) -> Iterator[Span]:
    """Push *span* onto the span-context stack for the duration of the block."""
    token = _span_context.set(_span_context.get() + (span,))
    try:
        yield span
    finally:
        _span_context.reset(token)


def _record_error(span: Span, exc: BaseException) -> None:
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, str(exc)))


@contextmanager
def traced_span(tracer: Tracer, name: str) -> Iterator[Span]:
    """
    Open a span around a block of code.

    The span nests under the current stack top and becomes the parent of
    any traced call made inside the block.  Errors are recorded on the
    span and re-raised.
    """
    span = start_span(tracer, name)
    try:
        with span_scope(span):
            try:
                yield span
            except Exception as exc:
                _record_error(span, exc)
                raise
            span.set_status(Status(StatusCode.OK))
    finally:
        span.end()


# ---------------------------------------------------------------------------
# Decorator
# ---------------------------------------------------------------------------

def with_tracing(method: Callable, name: str, tracer: Tracer | None = None) -> Callable:
    if not getattr(method, "traceable", False) or getattr(method, TRACED_MARKER, False):
        return method
    tracer = tracer or trace.get_tracer(TRACER_NAME)

    @functools.wraps(method)
    async def wrapper(*args, **kwargs):
        span = start_span(tracer, name)
        try:
            with span_scope(span):
                result = await invoke(method, args, kwargs)
        except Exception as exc:
            _record_error(span, exc)
            raise
        else:
            span.set_status(Status(StatusCode.OK))
            return result
        finally:
            span.end()

    setattr(wrapper, TRACED_MARKER, True)
    return wrapper


def decorate_with_tracing(
    service: Mapping[str, Callable],
    tracer: Tracer | None = None,
) -> dict[str, Callable]:
    """Return a copy of *service* with every ``traceable`` method traced."""
    return {
        name: with_tracing(method, name, tracer) if callable(method) else method
        for name, method in service.items()
    }
