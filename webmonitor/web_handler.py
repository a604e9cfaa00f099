"""Tables of web handlers for monitoring, reloading and debugging."""

from __future__ import annotations

import types
from collections.abc import Callable, Mapping
from enum import IntEnum
from typing import Any, Optional

_CO_VARARGS = 0x04


class HandlerType(IntEnum):
    """Kind of web handler."""

    MONITOR = 0
    RELOAD = 1
    PPROF = 2

    @property
    def label(self) -> str:
        """Name used in URLs and messages: monitor, reload or debug."""
        return _LABELS[self]


_LABELS = {
    HandlerType.MONITOR: "monitor",
    HandlerType.RELOAD: "reload",
    HandlerType.PPROF: "debug",
}


class HandlerError(ValueError):
    """Raised for invalid handler types, handlers or commands."""


def _handler_type(h_type: Any) -> HandlerType:
    try:
        return HandlerType(h_type)
    except ValueError:
        raise HandlerError(f"invalid handler type[{h_type}]") from None


def _accepts(f: Callable[..., Any], count: int) -> bool:
    """Tell whether ``f`` can be called with ``count`` positional arguments.

    Callables whose code cannot be examined are assumed to accept them.
    """
    target: Any = f
    skip = 0
    if isinstance(target, types.MethodType):
        target = target.__func__
        skip = 1
    elif not isinstance(target, (types.FunctionType, type)):
        call = getattr(type(target), "__call__", None)
        if isinstance(call, types.FunctionType):
            target = call
            skip = 1

    code = getattr(target, "__code__", None)
    if code is None:
        return True

    positional = code.co_argcount - skip
    defaults = len(getattr(target, "__defaults__", None) or ())
    required = max(0, positional - defaults)

    kwdefaults = getattr(target, "__kwdefaults__", None) or {}
    if code.co_kwonlyargcount > len(kwdefaults):
        return False
    if count < required:
        return False
    if count > positional and not code.co_flags & _CO_VARARGS:
        return False
    return True


def _validate(h_type: HandlerType, f: Any) -> None:
    """Handlers are callables taking no argument or the query parameters."""
    if not callable(f) or not (_accepts(f, 0) or _accepts(f, 1)):
        raise HandlerError(
            f"invalid {h_type.name.lower()} handler type {type(f).__name__}"
        )


class WebHandlers:
    """Handlers registered by type and command name."""

    def __init__(self) -> None:
        self.handlers: dict[HandlerType, dict[str, Callable[..., Any]]] = {
            h_type: {} for h_type in HandlerType
        }

    def register_handler(self, h_type: Any, command: str, f: Callable[..., Any]) -> None:
        """Register ``f`` for ``command``; a command may be registered only once."""
        kind = _handler_type(h_type)
        _validate(kind, f)
        table = self.handlers[kind]
        if command in table:
            raise HandlerError(
                f"handler exist already, type[{kind.label}], command[{command}]"
            )
        table[command] = f

    def get_handler(self, h_type: Any, command: str) -> Callable[..., Any]:
        """Return the handler for ``command``."""
        kind = _handler_type(h_type)
        try:
            return self.handlers[kind][command]
        except KeyError:
            raise HandlerError(
                f"handler not exist, type[{kind.label}], command[{command}]"
            ) from None

    def commands(self, h_type: Any) -> list[str]:
        """Return the registered command names of ``h_type``, sorted."""
        return sorted(self.handlers[_handler_type(h_type)])


def register_handlers(
    wh: Optional[WebHandlers], h_type: Any, table: Mapping[str, Callable[..., Any]]
) -> None:
    """Register every handler of ``table`` with ``wh``."""
    if wh is None:
        raise HandlerError("nil WebHandlers")
    try:
        kind = HandlerType(h_type)
    except ValueError:
        raise HandlerError(f"invalid handler type:{h_type}") from None

    for name, handler in table.items():
        try:
            wh.register_handler(kind, name, handler)
        except HandlerError as err:
            raise HandlerError(f"register:{kind.name}:{name}:{err}") from err