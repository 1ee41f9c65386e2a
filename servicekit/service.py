"""
Service composition.

A *service* is a mapping of method name to async callable.
``ServiceBuilder.build_service`` returns a new mapping in which each
method is wrapped, innermost first, by

1. validation (only methods with a ``schema``),
2. debug logging (every method, only when ``LOG_LEVEL`` is ``debug``),
3. tracing (only ``traceable`` methods).

The order is fixed: logging must see normalized arguments and the span
must cover everything below it, including the logging of errors.

Metadata is declared on the implementation with ``service_method``::

    @service_method(schema=PaymentArgs, traceable=True)
    async def charge(amount, currency="USD"):
        ...

    payments = builder.build_service({"charge": charge})
"""
import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, Tracer

from servicekit.config import Settings, settings as default_settings
from servicekit.logger import log_full_error, logger as default_logger, with_logging
from servicekit.tracing import TRACER_NAME, traced_span, with_tracing
from servicekit.validation import with_validation

BUILT_MARKER = "__service_built__"


def service_method(
    schema: Any = None,
    traceable: bool = False,
    params: Sequence[str] | None = None,
) -> Callable[[Callable], Callable]:
    """
    Attach service metadata to a function without wrapping it.

    *params* declares the parameter names explicitly; without it they are
    read from the function signature on first use.
    """

    def decorator(fn: Callable) -> Callable:
        if schema is not None:
            fn.schema = schema
        if traceable:
            fn.traceable = True
        if params is not None:
            fn.params = tuple(params)
        return fn

    return decorator


def is_built(method: Any) -> bool:
    return bool(getattr(method, BUILT_MARKER, False))


class ServiceBuilder:
    """
    Applies validation, logging and tracing to service tables.

    The logger, tracer and settings are injected once; each call to
    ``build_service`` is independent and never mutates its input.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        tracer: Tracer | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.tracer = tracer or trace.get_tracer(TRACER_NAME)
        self.logger = logger or default_logger

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def wrap(self, method: Callable, name: str) -> Callable:
        """Return *method* wrapped by every applicable stage, in order."""
        wrapped = with_validation(method, name)
        if self.settings.debug_enabled:
            wrapped = with_logging(
                wrapped,
                name,
                self.logger,
                redacted_fields=self.settings.REDACTED_FIELDS,
                max_items=self.settings.MAX_LOGGED_ITEMS,
            )
        wrapped = with_tracing(wrapped, name, self.tracer)
        if wrapped is method:
            return method
        setattr(wrapped, BUILT_MARKER, True)
        return wrapped

    def build_service(self, service: Mapping[str, Any]) -> dict[str, Any]:
        built: dict[str, Any] = {}
        for name, method in service.items():
            if not callable(method):
                built[name] = method
            elif is_built(method):
                self.logger.debug("Skipping %s: already built", name)
                built[name] = method
            else:
                built[name] = self.wrap(method, name)
        return built

    # ------------------------------------------------------------------
    # Helpers for service implementations
    # ------------------------------------------------------------------

    @contextmanager
    def span(self, name: str) -> Iterator[Span]:
        """Open a manual span nested under the current traced call."""
        with traced_span(self.tracer, name) as span:
            yield span

    def log_full_error(self, err: BaseException | None, signature: str | None = None) -> None:
        log_full_error(self.logger, err, signature)
