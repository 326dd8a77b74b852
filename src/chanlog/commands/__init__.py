"""chanlog subcommands.

Each module exports:
    register(subparsers, parents) — add its subparser(s)
    a run function               — bound via set_defaults(func=...)
"""

import os

from chanlog.config import APP_ENV_VAR, DEFAULT_APP
from chanlog.settings import JsonFileSettings


def settings_for(args):
    """Build the settings source selected by --settings / --app.

    Without --app the CLI uses $CHANLOG_APP, then 'default'; it never
    falls back to its own script name.
    """
    app = getattr(args, "app", None) or os.environ.get(APP_ENV_VAR) or DEFAULT_APP
    return JsonFileSettings(path=getattr(args, "settings", None), app=app)
