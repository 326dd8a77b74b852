"""
Channel — a named log sink that can be switched on and off at runtime.

Names use dot syntax. The last component is the channel name and the
rest is its subsystem:

    Channel("myapp.net.http")   name='http', subsystem='myapp.net'
    Channel("net")              name='net',  subsystem='chanlog'

A channel starts enabled when its name or full name is in the
manager's resolved settings (or when always_enabled is set). Logging to
a disabled channel costs one attribute read: pass a zero-argument
callable and it is only called when the channel is enabled.

    net = Channel("myapp.net")
    net.log("connected")
    net.log(lambda: expensive_dump(state))
"""

import sys
from dataclasses import dataclass
from typing import Any, NoReturn, Optional, Sequence

from .errors import FatalHandlerReturned
from .handlers import DEFAULT_HANDLER, Handler


# Subsystem used when the channel name has no dots
DEFAULT_SUBSYSTEM = "chanlog"


@dataclass(frozen=True)
class Context:
    """Source location of a log call."""
    file: str
    line: int
    column: int = 0
    function: str = ""

    @classmethod
    def capture(cls, depth: int = 1) -> "Context":
        """Build a Context for the frame `depth` levels above the caller.

        Column is 1-based and 0 when the interpreter has no position
        table for the instruction.
        """
        frame = sys._getframe(depth + 1)
        code = frame.f_code
        column = 0
        positions = getattr(code, "co_positions", None)
        if positions is not None and frame.f_lasti >= 0:
            for index, pos in enumerate(positions()):
                if index == frame.f_lasti // 2:
                    if pos[2] is not None:
                        column = pos[2] + 1
                    break
        return cls(file=code.co_filename, line=frame.f_lineno,
                   column=column, function=code.co_name)


def split_channel_name(name: str):
    """Split a dotted identifier into (subsystem, short name).

    Empty components are dropped: 'a..b' -> ('a', 'b'). With fewer than
    two components left the whole identifier is the short name and the
    subsystem is DEFAULT_SUBSYSTEM ('x.' -> (DEFAULT_SUBSYSTEM, 'x.')).
    """
    parts = [p for p in name.split(".") if p]
    if len(parts) < 2:
        return DEFAULT_SUBSYSTEM, name
    return ".".join(parts[:-1]), parts[-1]


class Channel:
    """A named, independently toggleable log channel.

    Args:
        name: Dotted identifier, e.g. 'myapp.net'
        handlers: Handlers to forward to (default: [DEFAULT_HANDLER])
        always_enabled: Start enabled regardless of settings
        manager: Owning Manager (default: chanlog.get_manager())

    Registration with the manager happens asynchronously; the initial
    `enabled` value is set here, before the constructor returns.
    """

    def __init__(self, name: str, handlers: Optional[Sequence[Handler]] = None,
                 always_enabled: bool = False, manager=None):
        if manager is None:
            from .manager import get_manager
            manager = get_manager()

        self.subsystem, self.name = split_channel_name(name)
        self.manager = manager
        self.handlers = tuple(handlers) if handlers is not None else (DEFAULT_HANDLER,)
        self.always_enabled = always_enabled

        # Read without locking; writes come from the manager's worker
        enabled_list = manager.channels_enabled_in_settings
        self.enabled = (always_enabled
                        or self.name in enabled_list
                        or self.full_name in enabled_list)

        manager.register(self)

    @property
    def full_name(self) -> str:
        return f"{self.subsystem}.{self.name}"

    @property
    def id(self) -> str:
        """Identifier used by views to look this channel up."""
        return self.full_name

    def log(self, logged: Any, *, context: Optional[Context] = None) -> None:
        """Log a value if the channel is enabled.

        A callable `logged` is called (once) only when enabled, and its
        result is what gets logged.
        """
        if not self.enabled:
            return
        value = logged() if callable(logged) else logged
        if context is None:
            context = Context.capture(1)
        self._dispatch(context, value)

    def debug(self, logged: Any, *, context: Optional[Context] = None) -> None:
        """Like log(), but does nothing when Python runs with -O."""
        if __debug__:
            if not self.enabled:
                return
            value = logged() if callable(logged) else logged
            if context is None:
                context = Context.capture(1)
            self._dispatch(context, value)

    def fatal(self, logged: Any, *, context: Optional[Context] = None) -> NoReturn:
        """Log a value whether enabled or not, then call the fatal handler.

        Never returns. If the installed handler returns anyway,
        FatalHandlerReturned is raised.
        """
        value = logged() if callable(logged) else logged
        if context is None:
            context = Context.capture(1)
        self._dispatch(context, value)
        self.manager.fatal_handler(value, self, context)
        raise FatalHandlerReturned(self.full_name, value)

    def _dispatch(self, context: Context, value: Any) -> None:
        for handler in self.handlers:
            handler.log(self, context, value)

    def __eq__(self, other):
        if not isinstance(other, Channel):
            return NotImplemented
        return self.full_name == other.full_name and self.manager is other.manager

    def __hash__(self):
        return hash(self.full_name)

    def __repr__(self):
        state = "enabled" if self.enabled else "disabled"
        return f"Channel({self.full_name!r}, {state})"
