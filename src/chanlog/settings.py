"""
Persisted channel settings and the override merge.

Two string entries make up a settings source:

    logs            comma-separated names enabled last run
    logs-override   one-shot override applied at the next startup

Override grammar (comma-separated tokens):

    name     enable (same as +name)
    +name    enable
    -name    disable
    =name    reset: the persisted list is replaced by the = entries
             (plus any plain/+ entries alongside them)

A single '=' token anywhere switches the whole override to reset mode.
The resolved set is written back as the new persisted list and the
stored override is cleared, so it applies exactly once.

Examples:
    persisted 'net'      override '+ui,-net'  ->  {'ui'}
    persisted 'net,ui'   override '=debug'    ->  {'debug'}
"""

import enum
import os
import sys
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple, Union

from .config import get_settings_path, load_json, save_json


ENABLED_KEY = "logs"
OVERRIDE_KEY = "logs-override"

# Per-run override, applied after the stored one
OVERRIDE_ENV_VAR = "CHANLOG_LOGS"
# Set to "1" to print the resolved channel list at startup
DEBUG_ENV_VAR = "CHANLOG_DEBUG"


class MergeMode(enum.Enum):
    """How an override string was applied."""
    DELTA = "delta"
    RESET = "reset"


def split_names(value: Union[str, Iterable[str], None]) -> List[str]:
    """Split a comma-separated string into names, keeping order.

    Iterables are passed through (as a list). Whitespace around names
    is stripped and empty names are dropped.
    """
    if not value:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    names = []
    for item in items:
        item = item.strip()
        if item:
            names.append(item)
    return names


def join_names(names: Iterable[str]) -> str:
    """Join names into the persisted form (sorted, deduplicated)."""
    return ",".join(sorted(set(names)))


def resolve_enabled_channels(
    persisted: Union[str, Iterable[str], None],
    override: Union[str, None],
) -> Tuple[Set[str], MergeMode]:
    """Merge an override string into the persisted enabled list.

    Args:
        persisted: Names enabled last run (string or iterable)
        override: One-shot override string (see module docstring)

    Returns:
        (resolved names, merge mode)
    """
    items = split_names(persisted)
    only_deltas = True
    new_items = []

    for token in split_names(override):
        prefix, rest = token[0], token[1:]
        if prefix == "=":
            only_deltas = False
            if rest:
                new_items.append(rest)
        elif prefix == "-":
            if rest in items:
                items = [i for i in items if i != rest]
        elif prefix == "+":
            if rest:
                new_items.append(rest)
        else:
            new_items.append(token)

    if only_deltas:
        return set(items) | set(new_items), MergeMode.DELTA
    # Reset mode throws away persisted, '-' removals included
    return set(new_items), MergeMode.RESET


def log_startup(channels: Iterable[str], file=None, environ=None) -> None:
    """Print the resolved channel list when CHANLOG_DEBUG=1."""
    environ = os.environ if environ is None else environ
    if environ.get(DEBUG_ENV_VAR) != "1":
        return
    file = file if file is not None else sys.stderr
    mode = "debug" if __debug__ else "release"
    print(f"\nchanlog running in {mode} mode.", file=file)
    names = sorted(channels)
    if names:
        print(f"Enabled log channels: {', '.join(names)}\n", file=file)
    else:
        print("All channels currently disabled.\n", file=file)


# =============================================================================
# Settings sources
# =============================================================================

class ManagerSettings:
    """Base class for a settings source used by a Manager.

    Subclasses provide storage for the two string entries; the merge,
    persistence and override clearing live here.
    """

    def load_enabled(self) -> str:
        raise NotImplementedError

    def load_override(self) -> str:
        raise NotImplementedError

    def save_enabled(self, names: Iterable[str]) -> None:
        raise NotImplementedError

    def set_override(self, text: str) -> None:
        raise NotImplementedError

    def clear_override(self) -> None:
        raise NotImplementedError

    def stored_override(self) -> str:
        """The override held by this source, without per-run additions."""
        return self.load_override()

    def add_override(self, text: str) -> None:
        """Append `text` to the stored override."""
        if not text:
            return
        existing = self.stored_override()
        self.set_override(f"{existing},{text}" if existing else text)

    def enabled_channel_ids(self, on_error=None) -> FrozenSet[str]:
        """Resolve, persist and return the enabled channel names.

        Consumes the stored override. An OSError while writing back is
        raised, or passed to `on_error(exc)` when given; the resolved
        names are returned either way.
        """
        resolved, _ = resolve_enabled_channels(
            self.load_enabled(), self.load_override())
        try:
            self.save_enabled(resolved)
            self.clear_override()
        except OSError as e:
            if on_error is None:
                raise
            on_error(e)
        return frozenset(resolved)

    def save_enabled_channels(self, channels) -> None:
        """Persist the full names of `channels`."""
        self.save_enabled(c.full_name for c in channels)


class MemorySettings(ManagerSettings):
    """Settings held in a dict. Nothing survives the process."""

    def __init__(self, enabled: Union[str, Iterable[str]] = "",
                 override: str = ""):
        self.values: Dict[str, str] = {
            ENABLED_KEY: join_names(split_names(enabled)),
            OVERRIDE_KEY: override or "",
        }

    def load_enabled(self) -> str:
        return self.values.get(ENABLED_KEY, "")

    def load_override(self) -> str:
        return self.values.get(OVERRIDE_KEY, "")

    def save_enabled(self, names: Iterable[str]) -> None:
        self.values[ENABLED_KEY] = join_names(names)

    def set_override(self, text: str) -> None:
        self.values[OVERRIDE_KEY] = text or ""

    def clear_override(self) -> None:
        self.values[OVERRIDE_KEY] = ""


class JsonFileSettings(ManagerSettings):
    """Settings stored in a JSON file (see chanlog.config).

    The override is the stored `logs-override` entry followed by the
    CHANLOG_LOGS environment variable. Only the stored entry is cleared
    after use; the environment only lives as long as the process.
    """

    def __init__(self, path=None, app=None, environ=None):
        self.environ = os.environ if environ is None else environ
        self.path = path if path is not None else get_settings_path(
            app, self.environ)

    def _load(self) -> dict:
        return load_json(self.path)

    def _store(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        save_json(self.path, data)

    def load_enabled(self) -> str:
        value = self._load().get(ENABLED_KEY, "")
        return value if isinstance(value, str) else ""

    def stored_override(self) -> str:
        stored = self._load().get(OVERRIDE_KEY, "")
        return stored if isinstance(stored, str) else ""

    def load_override(self) -> str:
        parts = [p for p in (self.stored_override(),
                             self.environ.get(OVERRIDE_ENV_VAR, "")) if p]
        return ",".join(parts)

    def save_enabled(self, names: Iterable[str]) -> None:
        self._store(ENABLED_KEY, join_names(names))

    def set_override(self, text: str) -> None:
        self._store(OVERRIDE_KEY, text or "")

    def clear_override(self) -> None:
        data = self._load()
        if data.get(OVERRIDE_KEY):
            data[OVERRIDE_KEY] = ""
            save_json(self.path, data)
