"""
Log-safe snapshots of arbitrary values.

``sanitize`` returns a JSON-safe deep copy in which

- every mapping key listed in *redacted_fields* has its value replaced by
  ``REDACTED`` at any depth, and
- every list or tuple longer than *max_items* is replaced by the string
  ``"Array(<length>)"``.

If the value cannot be represented as JSON (cycles, sockets, arbitrary
objects) the original value is returned unchanged: a log line must never
be the reason a service call fails.
"""
from collections.abc import Collection, Mapping
from datetime import date, datetime
from typing import Any

from servicekit.config import settings

REDACTED = "<removed>"

_SCALARS = (str, int, float, bool, type(None))


class _Unserializable(Exception):
    pass


def sanitize(
    value: Any,
    redacted_fields: Collection[str] | None = None,
    max_items: int | None = None,
) -> Any:
    if redacted_fields is None:
        redacted_fields = frozenset(settings.REDACTED_FIELDS)
    if max_items is None:
        max_items = settings.MAX_LOGGED_ITEMS
    try:
        return _copy(value, frozenset(redacted_fields), max_items, set())
    except (_Unserializable, RecursionError):
        return value


def _copy(value: Any, redacted: frozenset, max_items: int, seen: set[int]) -> Any:
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "model_dump"):
        try:
            value = value.model_dump(mode="json")
        except Exception as exc:
            raise _Unserializable from exc

    if isinstance(value, (Mapping, list, tuple)):
        marker = id(value)
        if marker in seen:
            raise _Unserializable("circular reference")
        seen.add(marker)
        try:
            if isinstance(value, Mapping):
                out = {}
                for key, item in value.items():
                    if not isinstance(key, _SCALARS):
                        raise _Unserializable(f"unsupported key {key!r}")
                    if key in redacted:
                        out[key] = REDACTED
                    else:
                        out[key] = _copy(item, redacted, max_items, seen)
                return out
            if len(value) > max_items:
                return f"Array({len(value)})"
            return [_copy(item, redacted, max_items, seen) for item in value]
        finally:
            seen.discard(marker)

    raise _Unserializable(type(value).__name__)
