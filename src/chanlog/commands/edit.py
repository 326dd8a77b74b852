"""chanlog enable/disable/set/clear/override — edit the persisted settings.

enable, disable and set go through the same merge that runs at startup,
so `chanlog disable net` is exactly the override '-net' applied now
instead of at the next run.
"""

import argparse

from chanlog.commands import settings_for
from chanlog.output import format_channel_list, print_detail, print_ok, print_out
from chanlog.settings import resolve_enabled_channels


def register(subparsers, parents):
    """Register the settings-editing subcommands."""
    for command, prefix, help_text in (
        ("enable", "+", "Enable channels (keep the others)"),
        ("disable", "-", "Disable channels (keep the others)"),
        ("set", "=", "Enable exactly these channels"),
    ):
        p = subparsers.add_parser(command, parents=parents, help=help_text)
        p.add_argument("names", nargs="+", metavar="NAME",
                       help="Channel name or full name (subsystem.name)")
        p.set_defaults(func=run_merge, prefix=prefix)

    p = subparsers.add_parser("clear", parents=parents,
                              help="Disable every channel")
    p.set_defaults(func=run_clear)

    p = subparsers.add_parser(
        "override",
        parents=parents,
        help="Store a one-shot override for the next run",
        description=(
            "Store an override string applied once at the next startup.\n"
            "\n"
            "  name / +name   enable\n"
            "  -name          disable\n"
            "  =name          replace the whole list\n"
            "\n"
            "Example: chanlog override '+ui,-net'"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("text", metavar="OVERRIDE",
                   help="Comma-separated override tokens ('' to cancel)")
    p.add_argument("--append", action="store_true", default=False,
                   help="Add to a pending override instead of replacing it")
    p.set_defaults(func=run_override)


def run_merge(args):
    settings = settings_for(args)
    override = ",".join(f"{args.prefix}{name}" for name in args.names)
    resolved, mode = resolve_enabled_channels(settings.load_enabled(), override)
    print_detail(f"Applied '{override}' ({mode.value} mode) to {settings.path}")
    settings.save_enabled(resolved)
    print_out(format_channel_list(resolved))
    return 0


def run_clear(args):
    settings = settings_for(args)
    settings.save_enabled([])
    print_ok("All channels disabled.")
    return 0


def run_override(args):
    settings = settings_for(args)
    if args.append:
        settings.add_override(args.text)
    else:
        settings.set_override(args.text)
    pending = settings.stored_override()
    if pending:
        print_ok(f"Override '{pending}' will be applied at the next run.")
    else:
        print_ok("Pending override cleared.")
    return 0
