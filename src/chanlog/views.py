"""
UI-side projection of a manager's channels.

A settings screen or debug menu needs a stable, thread-safe list of
channels and their state, plus actions to toggle them. ChannelListModel
keeps that list up to date by observing the manager, and addresses
channels by id (their full name) only:

    model = ChannelListModel(manager, on_change=redraw)
    for view in model.views():
        print(view.id, view.enabled)
    model.toggle("myapp.net")
    model.disable_all()

Views never hold a reference to the Channel object; actions look the
channel up through the manager when they run.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class ChannelView:
    """Snapshot of one channel for display."""
    id: str
    name: str
    subsystem: str
    enabled: bool

    @classmethod
    def from_channel(cls, channel) -> "ChannelView":
        return cls(id=channel.id, name=channel.name,
                   subsystem=channel.subsystem, enabled=channel.enabled)


class ChannelListModel:
    """Observer that mirrors a manager's channels as ChannelViews.

    Args:
        manager: Manager to observe
        filter: Only track these channels (empty: all channels)
        on_change: Called with no arguments after each refresh. Runs on
                   the manager's worker thread.
    """

    def __init__(self, manager, filter: Iterable = (),
                 on_change: Optional[Callable[[], None]] = None):
        self.manager = manager
        self.filter = frozenset(filter)
        self.on_change = on_change
        self._lock = threading.Lock()
        self._views: Dict[str, ChannelView] = {}
        self._refresh(manager.registered_channels())
        manager.add_observer(self, self.filter)

    def _refresh(self, channels) -> None:
        views = {}
        for channel in channels:
            if self.filter and channel not in self.filter:
                continue
            views[channel.id] = ChannelView.from_channel(channel)
        with self._lock:
            self._views = views

    def channels_updated(self, updated, all, all_enabled) -> None:
        self._refresh(all)
        if self.on_change is not None:
            self.on_change()

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def views(self) -> List[ChannelView]:
        """Current views, sorted by id."""
        with self._lock:
            return sorted(self._views.values(), key=lambda v: v.id)

    def view(self, id: str) -> Optional[ChannelView]:
        with self._lock:
            return self._views.get(id)

    def ids(self) -> List[str]:
        return [v.id for v in self.views()]

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def set_enabled(self, id: str, state: bool) -> bool:
        """Enable or disable the channel with this id.

        Returns False when no such channel is registered.
        """
        channel = self.manager.channel(id)
        if channel is None:
            return False
        self.manager.update([channel], state)
        return True

    def toggle(self, id: str) -> bool:
        """Flip the channel with this id. Returns False if unknown."""
        channel = self.manager.channel(id)
        if channel is None:
            return False
        self.manager.update([channel], not channel.enabled)
        return True

    def _tracked_channels(self):
        channels = self.manager.registered_channels()
        if self.filter:
            channels = [c for c in channels if c in self.filter]
        return channels

    def enable_all(self) -> None:
        self.manager.update(self._tracked_channels(), True)

    def disable_all(self) -> None:
        self.manager.update(self._tracked_channels(), False)

    def close(self) -> None:
        """Stop observing the manager."""
        self.manager.remove_observer(self)
