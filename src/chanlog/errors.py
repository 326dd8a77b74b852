"""Exception types raised by chanlog."""


class ChanlogError(Exception):
    """Base class for chanlog errors."""


class FatalHandlerReturned(ChanlogError):
    """A fatal error handler returned control to Channel.fatal().

    Fatal handlers must not return. When one does, this is raised
    instead so the caller of fatal() still never continues normally.
    """

    def __init__(self, channel_name, value):
        super().__init__(
            f"Fatal handler returned for channel {channel_name!r} ({value!r})")
        self.channel_name = channel_name
        self.value = value


class ManagerClosed(ChanlogError):
    """Work was submitted to a Manager after close()."""
