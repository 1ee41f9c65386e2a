"""
Schema validation for service methods.

A method opts in by carrying a ``schema`` attribute.  On each call the
positional / keyword arguments are folded into a name→value mapping,
validated and normalized by the schema, then unfolded again in
declaration order, so coercions such as ``"10"`` → ``10`` are what the
implementation receives.  A rejected call never reaches the
implementation.

Accepted schemas:

- a pydantic ``BaseModel`` subclass: validated with ``model_validate``;
  the model's fields become the normalized mapping,
- a pydantic ``TypeAdapter`` producing a mapping (e.g. over a
  ``TypedDict``),
- any callable taking the mapping and returning the normalized mapping.

The wrapper exposes its ``normalize`` step so the logging stage wrapped
around it can report the coerced arguments rather than the raw ones.
Wrapping an already validated method returns it unchanged.
"""
import functools
from collections.abc import Callable, Mapping
from typing import Any

import pydantic

from servicekit.errors import ValidationError
from servicekit.params import combine_arguments, get_params, invoke, present, split_arguments

VALIDATED_MARKER = "__validated__"


def _field_errors(exc: pydantic.ValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]


def run_schema(schema: Any, values: Mapping[str, Any], name: str = "") -> Mapping[str, Any]:
    """
    Validate *values* against *schema* and return the normalized mapping.

    Raises ``ValidationError`` with per-field details on rejection.
    """
    try:
        if isinstance(schema, type) and issubclass(schema, pydantic.BaseModel):
            normalized = dict(schema.model_validate(values))
        elif isinstance(schema, pydantic.TypeAdapter):
            normalized = schema.validate_python(values)
        else:
            normalized = schema(values)
    except ValidationError:
        raise
    except pydantic.ValidationError as exc:
        details = _field_errors(exc)
        summary = "; ".join(f"{d['field']}: {d['message']}" for d in details)
        raise ValidationError(f"Invalid arguments for {name}: {summary}", details, cause=exc) from exc
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid arguments for {name}: {exc}", cause=exc) from exc

    if not isinstance(normalized, Mapping):
        raise TypeError(f"schema for {name!r} returned {type(normalized).__name__}, expected a mapping")
    return normalized


def with_validation(method: Callable, name: str) -> Callable:
    schema = getattr(method, "schema", None)
    if schema is None or getattr(method, VALIDATED_MARKER, False):
        return method
    params = get_params(method)

    def normalize(args, kwargs) -> tuple[Mapping[str, Any], list, dict]:
        """Validate one call; return the normalized mapping and the call to make."""
        values = present(combine_arguments(params, args, kwargs))
        normalized = run_schema(schema, values, name)

        new_args, new_kwargs = split_arguments(params, normalized)
        # keyword-only and other undeclared keywords are not validated
        for key, value in kwargs.items():
            if key not in params:
                new_kwargs[key] = value
        return normalized, new_args, new_kwargs

    @functools.wraps(method)
    async def wrapper(*args, **kwargs):
        _, new_args, new_kwargs = normalize(args, kwargs)
        return await invoke(method, new_args, new_kwargs)

    normalize.stage = wrapper
    wrapper.params = params
    wrapper.normalize = normalize
    setattr(wrapper, VALIDATED_MARKER, True)
    return wrapper


def decorate_with_validators(service: Mapping[str, Callable]) -> dict[str, Callable]:
    """Return a copy of *service* with every schema-carrying method validated."""
    return {
        name: with_validation(method, name) if callable(method) else method
        for name, method in service.items()
    }
