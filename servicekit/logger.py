"""
Debug logging for service methods.

``decorate_with_logging`` wraps every method of a service so that each
call logs its name and sanitized arguments on entry, its sanitized result
on exit, and a full error report when it raises.  It is a no-op unless
the configured level is ``debug``.
"""
import functools
import logging
import traceback
from collections.abc import Callable, Collection, Mapping
from pprint import pformat

from servicekit.config import Settings, settings
from servicekit.params import combine_arguments, get_params, invoke, present
from servicekit.sanitize import sanitize

logger = logging.getLogger("servicekit")

_FORMAT = "%(levelname)s: %(message)s"

LOGGED_MARKER = "__logged__"


def configure_logging(settings: Settings) -> logging.Logger:
    """
    Attach a console handler to the ``servicekit`` logger at the level
    named by ``settings.LOG_LEVEL``.

    Safe to call more than once; the handler is only installed the first
    time.
    """
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)
    if not any(getattr(h, "_servicekit", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._servicekit = True
        logger.addHandler(handler)
    return logger


def _error_dump(err: BaseException) -> dict:
    dump = {
        "type": type(err).__name__,
        "message": str(err),
        "args": err.args,
    }
    dump.update(getattr(err, "__dict__", {}))
    return dump


def log_full_error(log: logging.Logger, err: BaseException | None, signature: str | None = None) -> None:
    """
    Log *err* with everything needed to debug it.

    The traceback of a given exception instance is written only once: the
    exception is marked ``logged`` afterwards, so nested decorated calls it
    propagates through add their signature line but not another stack.
    """
    if err is None:
        return
    if signature:
        log.error("Error happened in %s", signature)
    log.error("%s", pformat(_error_dump(err)))
    if not getattr(err, "logged", False):
        log.error("%s", "".join(traceback.format_exception(type(err), err, err.__traceback__)).rstrip())
        try:
            err.logged = True
        except (AttributeError, TypeError):
            pass


def with_logging(
    method: Callable,
    name: str,
    log: logging.Logger | None = None,
    redacted_fields: Collection[str] | None = None,
    max_items: int | None = None,
) -> Callable:
    if getattr(method, LOGGED_MARKER, False):
        return method
    log = log or logger
    params = get_params(method)

    # directly over a validation stage: log what validation produced
    normalize = getattr(method, "normalize", None)
    if getattr(normalize, "stage", None) is not method:
        normalize = None
    target = method.__wrapped__ if normalize is not None else method

    def snapshot(value) -> str:
        return pformat(sanitize(value, redacted_fields, max_items))

    @functools.wraps(method)
    async def wrapper(*args, **kwargs):
        log.debug("ENTER %s", name)
        log.debug("input arguments")
        values = present(combine_arguments(params, args, kwargs))
        try:
            if normalize is not None:
                values, args, kwargs = normalize(args, kwargs)
        except Exception as exc:
            log.debug("%s", snapshot(values))
            log_full_error(log, exc, name)
            raise
        log.debug("%s", snapshot(dict(values)))
        try:
            result = await invoke(target, args, kwargs)
        except Exception as exc:
            log_full_error(log, exc, name)
            raise
        log.debug("EXIT %s", name)
        log.debug("output arguments")
        if result is not None:
            log.debug("%s", snapshot(result))
        return result

    wrapper.params = params
    setattr(wrapper, LOGGED_MARKER, True)
    return wrapper


def decorate_with_logging(
    service: Mapping[str, Callable],
    log: logging.Logger | None = None,
    level: str | None = None,
    redacted_fields: Collection[str] | None = None,
    max_items: int | None = None,
) -> dict[str, Callable]:
    """
    Return a copy of *service* with every method logged when *level* is
    debug.  *level* defaults to ``settings.LOG_LEVEL``; the sanitizer
    options default to the settings as well.
    """
    level = level or settings.LOG_LEVEL
    if level.lower() != "debug":
        return dict(service)
    return {
        name: with_logging(method, name, log, redacted_fields, max_items) if callable(method) else method
        for name, method in service.items()
    }
