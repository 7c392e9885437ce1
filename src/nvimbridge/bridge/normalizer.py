"""Error normalization wrapper for public bridge operations."""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar, Union

from .errors import RECOGNIZED_ERRORS, CommandError

__all__ = ["bridge_operation", "normalize_exception", "remote_error_text"]

LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")
Context = Union[str, Callable[..., str]]


def remote_error_text(exc: BaseException) -> str:
    """Return the message carried by a remote or internal failure."""

    if exc.args:
        first = exc.args[0]
        if isinstance(first, bytes):
            return first.decode("utf-8", errors="replace")
        if isinstance(first, (list, tuple)) and len(first) == 2:
            # msgpack-rpc error payloads arrive as [type, message]
            return str(first[1])
        return str(first)
    return str(exc) or type(exc).__name__


def normalize_exception(exc: BaseException, context: str) -> Exception:
    """Map ``exc`` onto one of the three recognized error kinds."""

    if isinstance(exc, RECOGNIZED_ERRORS):
        return exc
    return CommandError(command=context, remote_error=remote_error_text(exc))


def _resolve_context(context: Context, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    if callable(context):
        try:
            return str(context(*args, **kwargs))
        except Exception:  # pragma: no cover - context builders are trivial
            LOGGER.debug("Context builder failed", exc_info=True)
            return "operation"
    return context


def bridge_operation(
    context: Context,
) -> Callable[[Callable[..., Awaitable[_T]]], Callable[..., Awaitable[_T]]]:
    """Decorate an async bridge method so only recognized errors escape it.

    ``context`` names the operation in wrapped errors. It may be a callable
    receiving the same arguments as the method (``self`` excluded).
    """

    def decorator(func: Callable[..., Awaitable[_T]]) -> Callable[..., Awaitable[_T]]:
        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> _T:
            try:
                return await func(self, *args, **kwargs)
            except RECOGNIZED_ERRORS:
                raise
            except Exception as exc:
                label = _resolve_context(context, args, kwargs)
                LOGGER.error("Bridge operation %s failed: %s", label, exc, exc_info=True)
                raise normalize_exception(exc, label) from exc

        return wrapper

    return decorator
