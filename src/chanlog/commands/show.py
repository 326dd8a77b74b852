"""chanlog show — list the persisted channel settings."""

import argparse

from chanlog.commands import settings_for
from chanlog.output import format_channel_list, print_detail, print_out
from chanlog.settings import split_names


def register(subparsers, parents):
    """Register the 'show' subcommand."""
    p = subparsers.add_parser(
        "show",
        parents=parents,
        help="List channels enabled in the settings",
        description=(
            "Show the channel names that will be enabled at the next run,\n"
            "and any override still waiting to be applied."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.set_defaults(func=run)


def run(args):
    settings = settings_for(args)
    print_detail(f"Settings file: {settings.path}")
    print_out(format_channel_list(split_names(settings.load_enabled())))
    pending = settings.stored_override()
    if pending:
        print_out(f"Pending override: {pending}")
    return 0
