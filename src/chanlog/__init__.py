"""
chanlog — runtime-switchable logging channels.

Named channels that can be turned on and off at runtime, remember their
state between runs, and forward log values to pluggable handlers.

Public API:
    Channel          — named log channel (log / debug / fatal)
    Context          — source location passed to handlers
    Manager          — serialized owner of channels and observers
    get_manager      — default manager (created on first use)
    init_manager     — replace the default manager
    Handler          — handler base class
    PrintHandler     — prints values, optionally prefixed by channel
    ManagerSettings  — settings source base class
    MemorySettings   — in-memory settings
    JsonFileSettings — settings in ~/.chanlog/<app>.json
    resolve_enabled_channels — the override merge
    ChannelListModel — id-based view of channels for UIs
    trace            — function tracing decorator
"""

from chanlog._version import __version__, __app_name__
from chanlog.channel import Channel, Context, DEFAULT_SUBSYSTEM
from chanlog.errors import ChanlogError, FatalHandlerReturned, ManagerClosed
from chanlog.handlers import Handler, PrintHandler
from chanlog.manager import Manager, get_manager, init_manager
from chanlog.settings import (
    JsonFileSettings, ManagerSettings, MemorySettings, MergeMode,
    resolve_enabled_channels,
)
from chanlog.trace import trace
from chanlog.views import ChannelListModel, ChannelView

__all__ = [
    "__version__", "__app_name__",
    "Channel", "Context", "DEFAULT_SUBSYSTEM",
    "ChanlogError", "FatalHandlerReturned", "ManagerClosed",
    "Handler", "PrintHandler",
    "Manager", "get_manager", "init_manager",
    "JsonFileSettings", "ManagerSettings", "MemorySettings", "MergeMode",
    "resolve_enabled_channels",
    "trace",
    "ChannelListModel", "ChannelView",
]
