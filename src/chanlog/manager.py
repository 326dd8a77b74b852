"""
Manager — owner of the channel registry.

Each Manager runs one worker thread that consumes a FIFO command queue.
Every change to manager state goes through that queue:

    register(channel)          add a channel (called by Channel())
    update(channels, state)    switch channels on/off and persist
    add_observer(...)          watch for changes

Observers are told about changes in coalesced batches. The first change
after a delivery schedules one delivery task; later changes that land
before it runs are folded into the same batch:

    update([a]); update([b]); update([c])
        -> one channels_updated({a, b, c}, all, enabled)

Logging itself never goes through the queue. Channel.log() runs on the
caller's thread and only reads `channel.enabled`.

Most programs use the default manager (get_manager()), which reads and
writes ~/.chanlog/<app>.json. Tests build their own:

    mgr = Manager(settings=MemorySettings(enabled="net"))
    net = Channel("net", manager=mgr)
"""

import atexit
import os
import queue
import sys
import threading
from concurrent.futures import Future
from typing import Any, Callable, FrozenSet, Iterable, List, Optional, Set, Tuple

from .channel import Channel
from .errors import ManagerClosed
from .handlers import STDOUT_HANDLER
from .settings import JsonFileSettings, ManagerSettings, MemorySettings, log_startup


# Queue sentinel that stops the worker
_STOP = object()


def default_fatal_handler(value: Any, channel: Channel, context) -> None:
    """Print the fatal message and abort the process."""
    print(f"{context.file}:{context.line}: "
          f"Channel {channel.name} was sent fatal message.\n{value}",
          file=channel.manager.out)
    channel.manager.out.flush()
    os.abort()


class Manager:
    """Serialized owner of channels, observers and settings.

    Args:
        settings: Settings source (default: MemorySettings())
        file: Stream for diagnostics and the default fatal message
              (default: sys.stderr)

    The enabled-name snapshot is resolved once, here, and exposed as
    `channels_enabled_in_settings`. A 'stdout' channel that is always
    enabled is registered on every manager as `manager.stdout`.
    """

    default_fatal_handler = staticmethod(default_fatal_handler)

    def __init__(self, settings: Optional[ManagerSettings] = None, file=None):
        self.settings = settings if settings is not None else MemorySettings()
        self.file = file
        self.fatal_handler: Callable = default_fatal_handler

        # Worker-owned state
        self._channels: Set[Channel] = set()
        self._observers: List[Tuple[FrozenSet[Channel], Any]] = []
        self._changed: Optional[Set[Channel]] = None

        self._queue: "queue.Queue" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._errors: List[BaseException] = []
        self._save_failed = False

        enabled = self.settings.enabled_channel_ids(
            on_error=self._report_save_error)
        self.channels_enabled_in_settings: FrozenSet[str] = enabled
        log_startup(enabled, file=self.out)

        self._worker = threading.Thread(
            target=self._run, name="chanlog-manager", daemon=True)
        self._worker.start()

        self.stdout = Channel("stdout", handlers=[STDOUT_HANDLER],
                              always_enabled=True, manager=self)

    @property
    def out(self):
        return self.file if self.file is not None else sys.stderr

    # -------------------------------------------------------------------------
    # Worker plumbing
    # -------------------------------------------------------------------------

    def _run(self) -> None:
        while True:
            command = self._queue.get()
            try:
                if command is _STOP:
                    return
                command()
            except Exception as e:
                # Fire-and-forget commands have no caller; hand the
                # error to the next flush()
                with self._lock:
                    self._errors.append(e)
            finally:
                self._queue.task_done()

    def _on_worker(self) -> bool:
        return threading.current_thread() is self._worker

    def _submit(self, command: Callable[[], None]) -> None:
        with self._lock:
            if self._closed:
                raise ManagerClosed("Manager has been closed")
            self._queue.put(command)

    def _call(self, fn: Callable[[], Any]) -> Any:
        """Run `fn` on the worker and wait for its result."""
        if self._on_worker():
            return fn()
        future: Future = Future()

        def command():
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(fn())
            except Exception as e:
                future.set_exception(e)

        self._submit(command)
        return future.result()

    def flush(self) -> None:
        """Block until all queued work (and the notifications it scheduled) is done.

        Re-raises the first error from a fire-and-forget command, if any.
        Returns immediately when called on the worker thread.
        """
        if self._on_worker():
            return
        self._queue.join()
        with self._lock:
            errors, self._errors = self._errors, []
        if errors:
            raise errors[0]

    def close(self) -> None:
        """Flush, then stop the worker. Further submissions raise ManagerClosed."""
        if self._closed:
            return
        try:
            self.flush()
        finally:
            with self._lock:
                self._closed = True
                self._queue.put(_STOP)
            if not self._on_worker():
                self._worker.join()

    # -------------------------------------------------------------------------
    # Registration and updates
    # -------------------------------------------------------------------------

    def register(self, channel: Channel) -> None:
        """Add `channel` to the registry (asynchronously)."""
        def command():
            self._channels.add(channel)
            self._schedule_notification([channel])
        self._submit(command)

    def update(self, channels: Iterable[Channel], state: bool) -> None:
        """Set `enabled = state` on each channel, persist, and notify once."""
        channels = list(channels)

        def command():
            for channel in channels:
                channel.enabled = state
            self._save_settings()
            self._schedule_notification(channels)
        self._submit(command)

    def add_observer(self, observer, filter: Iterable[Channel] = ()) -> None:
        """Register an observer.

        `observer` is an object with channels_updated(updated, all,
        all_enabled), or a callable taking the same arguments. It is
        only told about changes to channels in `filter`; an empty filter
        matches every change.
        """
        entry = (frozenset(filter), observer)
        self._call(lambda: self._observers.append(entry))

    def remove_observer(self, observer) -> None:
        """Stop notifying `observer` (all of its filters)."""
        def remove():
            self._observers[:] = [(f, o) for f, o in self._observers
                                  if o is not observer]
        self._call(remove)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def registered_channels(self) -> List[Channel]:
        """Registered channels, sorted by full name."""
        return self._call(
            lambda: sorted(self._channels, key=lambda c: c.full_name))

    def enabled_channels(self) -> List[Channel]:
        """Registered channels that are currently enabled."""
        return [c for c in self.registered_channels() if c.enabled]

    def channel(self, id: str) -> Optional[Channel]:
        """Look up a registered channel by full name, then by short name."""
        def find():
            for c in self._channels:
                if c.full_name == id:
                    return c
            for c in self._channels:
                if c.name == id:
                    return c
            return None
        return self._call(find)

    # -------------------------------------------------------------------------
    # Notifications (worker thread only)
    # -------------------------------------------------------------------------

    def _schedule_notification(self, channels: Iterable[Channel] = ()) -> None:
        first = self._changed is None
        if first:
            self._changed = set()
        self._changed.update(channels)
        if first:
            self._queue.put(self._post_change_notification)

    def _post_change_notification(self) -> None:
        changed = self._changed
        if changed is None:
            return
        try:
            all_channels = frozenset(self._channels)
            pending = frozenset(changed)
            enabled = frozenset(c for c in pending if c.enabled)
            for channel_filter, observer in list(self._observers):
                matching = pending if not channel_filter else channel_filter & pending
                if not matching:
                    continue
                notify = getattr(observer, "channels_updated", observer)
                notify(matching, all_channels, enabled)
        finally:
            self._changed = None
            self._save_settings()

    def _enabled_names(self) -> Set[str]:
        """Names to persist: enabled channels plus unmatched settings entries.

        Settings entries naming channels that were never registered this
        run are kept so they still apply next run.
        """
        known = set()
        for c in self._channels:
            known.add(c.name)
            known.add(c.full_name)
        names = {n for n in self.channels_enabled_in_settings if n not in known}
        names.update(c.full_name for c in self._channels
                     if c.enabled and not c.always_enabled)
        return names

    def _save_settings(self) -> None:
        try:
            self.settings.save_enabled(self._enabled_names())
        except OSError as e:
            self._report_save_error(e)

    def _report_save_error(self, error: OSError) -> None:
        """Warn once that settings could not be written; logging goes on."""
        if self._save_failed:
            return
        self._save_failed = True
        print(f"chanlog: could not save channel settings: {error}",
              file=self.out)

    # -------------------------------------------------------------------------
    # Fatal errors
    # -------------------------------------------------------------------------

    def install_fatal_error_handler(self, handler: Callable) -> Callable:
        """Install `handler` for Channel.fatal(); returns the previous one.

        The handler is called as handler(value, channel, context) and
        must not return.
        """
        previous = self.fatal_handler
        self.fatal_handler = handler
        return previous

    def reset_fatal_error_handler(self) -> None:
        """Restore the default fatal handler."""
        self.fatal_handler = default_fatal_handler

    def __repr__(self):
        return f"Manager(settings={self.settings!r})"


# =============================================================================
# Default instance
# =============================================================================

_manager: Optional[Manager] = None
_manager_lock = threading.Lock()
_atexit_registered = False


def _flush_default() -> None:
    if _manager is not None:
        _manager.flush()


def _install(manager: Manager) -> Manager:
    global _manager, _atexit_registered
    _manager = manager
    if not _atexit_registered:
        atexit.register(_flush_default)
        _atexit_registered = True
    return manager


def init_manager(settings: Optional[ManagerSettings] = None,
                 override: Optional[str] = None, file=None) -> Manager:
    """Create the default Manager, replacing any existing one.

    Call once at startup, before creating channels, when the defaults
    need changing. The previous default Manager is flushed and closed
    first, so its pending saves land before the new one reads settings;
    channels still bound to it raise ManagerClosed on registration.

    Args:
        settings: Settings source (default: JsonFileSettings())
        override: Override string to apply on top of the stored
                  settings (e.g. from a --logs command-line flag)
        file: Diagnostic stream (default: stderr)

    Returns:
        The new default Manager
    """
    global _manager
    with _manager_lock:
        previous, _manager = _manager, None
        if previous is not None:
            previous.close()
        if settings is None:
            settings = JsonFileSettings()
        if override:
            settings.add_override(override)
        return _install(Manager(settings=settings, file=file))


def get_manager() -> Manager:
    """Get the default Manager, creating it on first use."""
    with _manager_lock:
        if _manager is None:
            return _install(Manager(settings=JsonFileSettings()))
        return _manager
