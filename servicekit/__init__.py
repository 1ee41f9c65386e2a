from servicekit.config import Settings, settings
from servicekit.errors import (
    BadRequestError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from servicekit.logger import configure_logging, decorate_with_logging, log_full_error
from servicekit.params import ABSENT, combine_arguments, get_params
from servicekit.sanitize import sanitize
from servicekit.service import ServiceBuilder, service_method
from servicekit.tracing import configure_tracing, current_span_stack, decorate_with_tracing, traced_span
from servicekit.validation import decorate_with_validators

__all__ = [
    "ABSENT",
    "BadRequestError",
    "NotFoundError",
    "ServiceBuilder",
    "ServiceError",
    "Settings",
    "ValidationError",
    "combine_arguments",
    "configure_logging",
    "configure_tracing",
    "current_span_stack",
    "decorate_with_logging",
    "decorate_with_tracing",
    "decorate_with_validators",
    "get_params",
    "log_full_error",
    "sanitize",
    "service_method",
    "settings",
    "traced_span",
]
