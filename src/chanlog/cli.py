"""Main CLI entry point for chanlog.

Inspects and edits the persisted channel settings of an application:

    chanlog show                     # what is enabled next run
    chanlog enable net ui            # +net,+ui
    chanlog disable net              # -net
    chanlog set debug                # =debug
    chanlog clear
    chanlog override '+ui,-net'      # applied once, at the next run

Global flags (--verbose) can appear before or after the subcommand.
Subcommands self-register via the register(subparsers, parents) convention.
"""

import argparse
import sys

from chanlog._version import PIP_VERSION, __version__


# ---------------------------------------------------------------------------
# Global flags (can precede or follow the subcommand)
# ---------------------------------------------------------------------------
GLOBAL_FLAGS = {
    "--verbose": {"aliases": ["-v"], "action": "store_true", "default": False,
                  "help": "Show extra detail (settings file, merge mode)"},
}


def _extract_global_flags(argv):
    """Two-pass parse: pull global flags from anywhere in argv.

    Returns (global_namespace, remaining_argv).
    """
    global_parser = argparse.ArgumentParser(add_help=False)
    for flag, kwargs in GLOBAL_FLAGS.items():
        kw = {k: v for k, v in kwargs.items() if k != "aliases"}
        global_parser.add_argument(flag, *kwargs.get("aliases", []), **kw)
    return global_parser.parse_known_args(argv)


# ---------------------------------------------------------------------------
# Shared parent parser (inherited by all subcommands via parents=[])
# ---------------------------------------------------------------------------
def _build_common_parser():
    """Build the shared argument parser for settings selection."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--app", metavar="NAME",
                        help="Application whose settings to use "
                             "(default: $CHANLOG_APP or 'default')")
    common.add_argument("--settings", metavar="PATH",
                        help="Settings file (overrides --app)")
    return common


# ---------------------------------------------------------------------------
# Subcommand discovery and registration
# ---------------------------------------------------------------------------
def _discover_commands():
    """Import and return all command modules."""
    from chanlog.commands import edit, show
    return [show, edit]


def _build_parser(commands, common_parser):
    """Build the main argparse parser with subcommand dispatch."""
    parser = argparse.ArgumentParser(
        prog="chanlog",
        description="chanlog — manage persisted log channel settings",
        epilog="Run 'chanlog <command> --help' for details on a specific command.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"chanlog {__version__} ({PIP_VERSION})",
    )
    for flag, kwargs in GLOBAL_FLAGS.items():
        kw = {k: v for k, v in kwargs.items() if k != "aliases"}
        parser.add_argument(flag, *kwargs.get("aliases", []), **kw)

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )
    for cmd_module in commands:
        cmd_module.register(subparsers, parents=[common_parser])

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main(argv=None):
    """Main entry point for the chanlog CLI.

    Args:
        argv: Command-line arguments. None means sys.argv[1:].

    Returns:
        Exit code (0 = success).
    """
    if argv is None:
        argv = sys.argv[1:]

    global_args, remaining = _extract_global_flags(argv)

    from chanlog.output import init_cli_output, print_error
    manager = init_cli_output(verbose=global_args.verbose)

    parser = _build_parser(_discover_commands(), _build_common_parser())

    if not remaining:
        parser.print_help()
        return 0

    args = parser.parse_args(remaining)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        return args.func(args) or 0
    except KeyboardInterrupt:
        print_error("Interrupted.")
        return 130
    except OSError as e:
        print_error(f"Could not access settings: {e}")
        return 1
    finally:
        manager.flush()


if __name__ == "__main__":
    sys.exit(main())
