"""
Log handlers.

A handler receives every value logged on an enabled channel it is
attached to:

    handler.log(channel, context, logged)

Handlers run synchronously on the logging thread. Exceptions they
raise are not caught by the channel.
"""

import sys
from typing import Any, Optional, TextIO


class Handler:
    """Base class for handlers. Subclasses override log()."""

    def __init__(self, name: str):
        self.name = name

    def log(self, channel, context, logged: Any) -> None:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


class PrintHandler(Handler):
    """Handler that prints each value on its own line.

    Lines are prefixed with the channel name (and optionally its
    subsystem) in brackets:

        [net] connected
        [myapp.net] connected     (show_subsystem=True)
        connected                 (show_name=False)

    Args:
        name: Handler name
        show_name: Prefix lines with the channel name
        show_subsystem: Use the channel's full name in the prefix
        file: Output stream. None means sys.stdout at the time of logging.
    """

    def __init__(self, name: str, show_name: bool = True,
                 show_subsystem: bool = False, file: Optional[TextIO] = None):
        super().__init__(name)
        self.show_name = show_name
        self.show_subsystem = show_subsystem
        self.file = file

    def format(self, channel, logged: Any) -> str:
        text = str(logged)
        if not self.show_name:
            return text
        label = channel.full_name if self.show_subsystem else channel.name
        return f"[{label}] {text}"

    def log(self, channel, context, logged: Any) -> None:
        file = self.file if self.file is not None else sys.stdout
        print(self.format(channel, logged), file=file)


# Handler for the per-manager stdout channel: bare output, no prefix
STDOUT_HANDLER = PrintHandler("stdout", show_name=False, show_subsystem=False)

# Handler used when a channel is created without explicit handlers
DEFAULT_HANDLER = PrintHandler("default")
