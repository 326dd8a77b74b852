"""Output helpers for the chanlog CLI.

The CLI logs through its own channels on a private in-memory Manager,
so its output never touches (or is affected by) the settings it edits.

    out     always on, bare stdout
    detail  enabled by --verbose
    error   always on, stderr
"""

import sys

from chanlog.channel import Channel
from chanlog.handlers import PrintHandler
from chanlog.manager import Manager
from chanlog.settings import MemorySettings


class _ErrHandler(PrintHandler):
    """PrintHandler bound to sys.stderr at call time."""

    def log(self, channel, context, logged):
        print(self.format(channel, logged), file=sys.stderr)


_cli = None


def init_cli_output(verbose=False):
    """Build the CLI's manager and channels. Returns the manager."""
    global _cli
    if _cli is not None:
        _cli["manager"].close()
    manager = Manager(settings=MemorySettings(
        override="chanlog.cli.detail" if verbose else ""))
    _cli = {
        "manager": manager,
        "detail": Channel("chanlog.cli.detail", manager=manager,
                          handlers=[PrintHandler("detail", show_name=False)]),
        "error": Channel("chanlog.cli.error", manager=manager, always_enabled=True,
                         handlers=[_ErrHandler("error", show_name=False)]),
    }
    return manager


def _channels():
    if _cli is None:
        init_cli_output()
    return _cli


def print_out(msg):
    """Print normal command output."""
    _channels()["manager"].stdout.log(msg)


def print_detail(msg):
    """Print a line only shown with --verbose."""
    _channels()["detail"].log(msg)


def print_ok(msg):
    """Print a success message."""
    print_out(f"  [OK] {msg}")


def print_error(msg):
    """Print an error message to stderr."""
    _channels()["error"].log(f"  ERROR: {msg}")


def format_channel_list(names, title="Enabled channels:"):
    """Format persisted channel names for display."""
    names = sorted(names)
    if not names:
        return "No channels enabled."
    lines = [title]
    for name in names:
        lines.append(f"  {name}")
    return "\n".join(lines)
