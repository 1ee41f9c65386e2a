"""
Parameter reification — named-argument views over positional calls.

Decorators only see ``*args`` / ``**kwargs`` at call time.  To validate or
log arguments by name they need the wrapped method's declared parameter
names, which are resolved once per callable and cached on it:

1. An explicit ``params`` attribute (set by ``service_method(params=...)``)
   always wins, except on bound methods, which are always introspected.
2. Otherwise ``inspect.signature`` is consulted.  Only parameters that can
   be bound positionally are kept.
3. Callables without an introspectable signature (some builtins, C
   extensions) yield an empty tuple; every caller must cope with a partial
   or empty mapping.
"""
import inspect
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class _Absent:
    """Marker for a declared parameter that received no value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Any = _Absent()


def get_params(fn: Callable) -> tuple[str, ...]:
    """Return the ordered parameter names of *fn*, caching them on *fn*."""
    # a bound method reads attributes through __func__, whose cached names
    # still include the receiver
    declared = None if inspect.ismethod(fn) else getattr(fn, "params", None)
    if declared is not None:
        return tuple(declared)

    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return ()

    params = tuple(
        name for name, p in signature.parameters.items() if p.kind in _POSITIONAL_KINDS
    )
    try:
        fn.params = params
    except (AttributeError, TypeError):
        # bound methods and builtins reject new attributes
        pass
    return params


def combine_arguments(
    params: Sequence[str],
    args: Iterable[Any],
    kwargs: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Zip *args* onto *params* in declaration order.

    Positional values beyond the declared names are dropped.  Keyword
    values fill declared names only.  Names left without a value map to
    ``ABSENT``.
    """
    combined: dict[str, Any] = dict.fromkeys(params, ABSENT)
    for name, value in zip(params, args):
        combined[name] = value
    if kwargs:
        for name, value in kwargs.items():
            if name in combined:
                combined[name] = value
    return combined


def present(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Return *mapping* without its ``ABSENT`` entries."""
    return {k: v for k, v in mapping.items() if v is not ABSENT}


def split_arguments(
    params: Sequence[str],
    normalized: Mapping[str, Any],
) -> tuple[list[Any], dict[str, Any]]:
    """
    Rebuild call arguments from a name→value mapping.

    The leading run of present names is passed positionally, in
    declaration order.  After the first missing name every remaining
    present name goes by keyword so the callee's defaults still apply.
    Keys of *normalized* that are not declared parameters are ignored.
    """
    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    positional = True
    for name in params:
        value = normalized.get(name, ABSENT)
        if value is ABSENT:
            positional = False
            continue
        if positional:
            args.append(value)
        else:
            kwargs[name] = value
    return args, kwargs


async def invoke(method: Callable, args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any:
    """Call *method* and await the result when it is awaitable."""
    result = method(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
