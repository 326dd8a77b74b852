"""Settings file locations for chanlog.

Persisted channel settings live in one JSON file per application:

    ~/.chanlog/<app>.json

The location can be pinned with the CHANLOG_SETTINGS environment
variable (full path to the file), and the default app name with
CHANLOG_APP.
"""

import json
import os
import sys
from pathlib import Path


SETTINGS_ENV_VAR = "CHANLOG_SETTINGS"
APP_ENV_VAR = "CHANLOG_APP"
DEFAULT_APP = "default"


# ---------------------------------------------------------------------------
# Settings file locations
# ---------------------------------------------------------------------------
def get_settings_dir():
    """Return the settings directory (~/.chanlog/)."""
    return Path.home() / ".chanlog"


def default_app_name(environ=None):
    """Return the app name used to pick a settings file.

    Order: CHANLOG_APP, then the running script's stem, then 'default'.
    """
    environ = os.environ if environ is None else environ
    app = environ.get(APP_ENV_VAR)
    if app:
        return app
    script = Path(sys.argv[0]).stem if sys.argv and sys.argv[0] else ""
    if script and script not in ("-c", "-m", "__main__"):
        return script
    return DEFAULT_APP


def get_settings_path(app=None, environ=None):
    """Return the settings file path for `app`.

    CHANLOG_SETTINGS wins over everything when set.
    """
    environ = os.environ if environ is None else environ
    pinned = environ.get(SETTINGS_ENV_VAR)
    if pinned:
        return Path(pinned)
    return get_settings_dir() / f"{app or default_app_name(environ)}.json"


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------
def load_json(path):
    """Load a JSON object from `path`.

    Returns an empty dict when the file is missing, unreadable, not valid
    UTF-8 or not valid JSON.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_json(path, data):
    """Write `data` to `path` as indented JSON, creating parent dirs."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
        f.write("\n")
    return path
