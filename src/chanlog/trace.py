"""
Function tracing decorator.

Logs entry, return and exceptions of the decorated function on a
channel. Nothing is formatted unless the channel is enabled when the
function is called.

    calls = Channel("myapp.calls")

    @trace(calls)
    def load(path): ...
"""

import functools
import inspect
from pathlib import Path

from .channel import Context


def _short_repr(value):
    if isinstance(value, Path):
        return f"Path('{value}')"
    if isinstance(value, str) and len(value) > 50:
        return f"'{value[:47]}...'"
    if isinstance(value, (list, tuple)) and len(value) > 3:
        return f"[...{len(value)} items...]"
    return repr(value)


def format_call(func, args, kwargs):
    """Format a call's arguments the way trace output shows them."""
    args_repr = []

    # Methods: show 'self' rather than the instance repr
    remaining = args
    if args and "." in func.__qualname__ and func.__name__ != "__init__":
        params = list(inspect.signature(func).parameters)
        if params and params[0] in ("self", "cls"):
            args_repr.append(params[0])
            remaining = args[1:]

    args_repr.extend(_short_repr(arg) for arg in remaining)
    args_repr.extend(f"{key}={_short_repr(value)}" for key, value in kwargs.items())
    return ", ".join(args_repr)


def trace(channel):
    """Decorator factory: trace calls to the decorated function on `channel`.

    Output lines:
        >> module.func(args)
        << module.func returned: value     (skipped for None)
        !! module.func raised: Type: msg   (exception is re-raised)
    """
    def decorator(func):
        module = inspect.getmodule(func)
        module_name = module.__name__ if module else "unknown"
        label = f"{module_name}.{func.__qualname__}"
        context = Context(file=func.__code__.co_filename,
                          line=func.__code__.co_firstlineno,
                          function=func.__name__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not channel.enabled:
                return func(*args, **kwargs)

            channel.log(lambda: f">> {label}({format_call(func, args, kwargs)})",
                        context=context)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                channel.log(lambda: f"!! {label} raised: {type(e).__name__}: {e}",
                            context=context)
                raise

            if result is not None:
                channel.log(lambda: f"<< {label} returned: {_short_repr(result)}",
                            context=context)
            return result

        return wrapper

    return decorator
