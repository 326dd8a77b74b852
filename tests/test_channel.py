"""
Tests for chanlog.channel — naming, initial state, lazy logging and fatal.
"""

import inspect
import io
import os
import subprocess
import sys
from pathlib import Path

import pytest

from chanlog.channel import DEFAULT_SUBSYSTEM, Channel, Context, split_channel_name
from chanlog.errors import FatalHandlerReturned
from chanlog.handlers import PrintHandler


class Stop(Exception):
    """Raised by test fatal handlers in place of terminating."""


SRC_DIR = str(Path(__file__).resolve().parents[1] / "src")

OPTIMIZED_DEBUG_SCRIPT = """
from chanlog.channel import Channel
from chanlog.handlers import Handler
from chanlog.manager import Manager

class Recorder(Handler):
    def __init__(self):
        super().__init__("recorder")
        self.values = []

    def log(self, channel, context, logged):
        self.values.append(logged)

calls = []
recorder = Recorder()
mgr = Manager()
ch = Channel("net", handlers=[recorder], always_enabled=True, manager=mgr)
ch.debug(lambda: calls.append(1) or "dbg")
ch.log("kept")
mgr.close()
print(__debug__, calls, recorder.values)
"""


# =============================================================================
# Naming
# =============================================================================

class TestNaming:
    """Test subsystem/name splitting."""

    def test_dotted_name(self, manager):
        ch = Channel("a.b.c", manager=manager)
        assert ch.subsystem == "a.b"
        assert ch.name == "c"
        assert ch.full_name == "a.b.c"

    def test_plain_name_uses_default_subsystem(self, manager):
        ch = Channel("x", manager=manager)
        assert ch.subsystem == DEFAULT_SUBSYSTEM
        assert ch.name == "x"
        assert ch.full_name == f"{DEFAULT_SUBSYSTEM}.x"

    def test_id_is_full_name(self, manager):
        assert Channel("myapp.net", manager=manager).id == "myapp.net"

    def test_split_leading_dot(self):
        assert split_channel_name(".x") == (DEFAULT_SUBSYSTEM, ".x")

    def test_trailing_dot_keeps_whole_name(self, manager):
        ch = Channel("x.", manager=manager)
        assert ch.subsystem == DEFAULT_SUBSYSTEM
        assert ch.name == "x."

    def test_empty_components_dropped(self):
        assert split_channel_name("a..b") == ("a", "b")
        assert split_channel_name("a..b.c") == ("a.b", "c")
        assert split_channel_name("..") == (DEFAULT_SUBSYSTEM, "..")


# =============================================================================
# Initial enabled state
# =============================================================================

class TestInitialState:
    """Test enabled state computed at construction."""

    def test_disabled_by_default(self, manager):
        assert Channel("net", manager=manager).enabled is False

    def test_enabled_by_short_name(self, make_manager):
        mgr = make_manager(enabled="net")
        assert Channel("myapp.net", manager=mgr).enabled is True

    def test_enabled_by_full_name(self, make_manager):
        mgr = make_manager(enabled="myapp.net")
        assert Channel("myapp.net", manager=mgr).enabled is True
        assert Channel("other.net", manager=mgr).enabled is False

    def test_enabled_by_override(self, make_manager):
        mgr = make_manager(enabled="net", override="+ui,-net")
        assert Channel("ui", manager=mgr).enabled is True
        assert Channel("net", manager=mgr).enabled is False

    def test_always_enabled_ignores_settings(self, make_manager):
        mgr = make_manager(enabled="", override="=other")
        assert Channel("net", always_enabled=True, manager=mgr).enabled is True

    def test_default_handler(self, manager):
        ch = Channel("net", manager=manager)
        assert len(ch.handlers) == 1
        assert isinstance(ch.handlers[0], PrintHandler)


# =============================================================================
# Logging
# =============================================================================

class TestLog:
    """Test log() dispatch and laziness."""

    def test_disabled_channel_does_not_evaluate(self, manager, recorder):
        ch = Channel("net", handlers=[recorder], manager=manager)
        calls = []

        def compute():
            calls.append(1)
            return "expensive"

        ch.log(compute)
        assert calls == []
        assert recorder.records == []

    def test_enabled_channel_evaluates_once(self, manager, recorder):
        ch = Channel("net", handlers=[recorder], always_enabled=True, manager=manager)
        calls = []

        def compute():
            calls.append(1)
            return "value"

        ch.log(compute)
        assert calls == [1]
        assert recorder.values == ["value"]

    def test_plain_values(self, manager, recorder):
        ch = Channel("net", handlers=[recorder], always_enabled=True, manager=manager)
        ch.log({"a": 1})
        assert recorder.values == [{"a": 1}]

    def test_handlers_called_in_order(self, manager):
        order = []

        class Named(PrintHandler):
            def log(self, channel, context, logged):
                order.append(self.name)

        ch = Channel("net", handlers=[Named("first"), Named("second")],
                     always_enabled=True, manager=manager)
        ch.log("x")
        assert order == ["first", "second"]

    def test_handler_receives_channel(self, manager, recorder):
        ch = Channel("net", handlers=[recorder], always_enabled=True, manager=manager)
        ch.log("x")
        assert recorder.records[0][0] is ch

    def test_context_captures_call_site(self, manager, recorder):
        ch = Channel("net", handlers=[recorder], always_enabled=True, manager=manager)
        line = inspect.currentframe().f_lineno + 1
        ch.log("here")
        context = recorder.records[0][1]
        assert isinstance(context, Context)
        assert os.path.basename(context.file) == "test_channel.py"
        assert context.line == line
        assert context.function == "test_context_captures_call_site"
        assert context.column >= 0

    def test_explicit_context(self, manager, recorder):
        ch = Channel("net", handlers=[recorder], always_enabled=True, manager=manager)
        ctx = Context(file="f.py", line=3, column=1, function="fn")
        ch.log("x", context=ctx)
        assert recorder.records[0][1] is ctx

    def test_handler_errors_propagate(self, manager):
        class Broken(PrintHandler):
            def log(self, channel, context, logged):
                raise RuntimeError("handler failed")

        ch = Channel("net", handlers=[Broken("broken")], always_enabled=True,
                     manager=manager)
        with pytest.raises(RuntimeError, match="handler failed"):
            ch.log("x")

    def test_print_handler_format(self, manager):
        buf = io.StringIO()
        ch = Channel("myapp.net", manager=manager, always_enabled=True, handlers=[
            PrintHandler("a", file=buf),
            PrintHandler("b", show_subsystem=True, file=buf),
            PrintHandler("c", show_name=False, file=buf),
        ])
        ch.log("hello")
        assert buf.getvalue().splitlines() == [
            "[net] hello", "[myapp.net] hello", "hello",
        ]

    def test_stdout_channel(self, manager, capsys):
        manager.stdout.log("plain output")
        assert capsys.readouterr().out == "plain output\n"


# =============================================================================
# Debug
# =============================================================================

class TestDebug:
    """Test debug(): like log() normally, gone under python -O."""

    def test_debug_logs_when_enabled(self, manager, recorder):
        ch = Channel("net", handlers=[recorder], always_enabled=True, manager=manager)
        ch.debug(lambda: "dbg")
        assert recorder.values == ["dbg"]
        assert recorder.records[0][1].function == "test_debug_logs_when_enabled"

    def test_debug_lazy_when_disabled(self, manager, recorder):
        ch = Channel("net", handlers=[recorder], manager=manager)
        calls = []
        ch.debug(lambda: calls.append(1))
        assert calls == []
        assert recorder.records == []

    def test_debug_stripped_under_optimize(self):
        """'python -O' removes debug() output; log() is unaffected."""
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (SRC_DIR, env.get("PYTHONPATH")) if p)
        result = subprocess.run(
            [sys.executable, "-O", "-c", OPTIMIZED_DEBUG_SCRIPT],
            capture_output=True, text=True, timeout=30, env=env,
        )
        assert result.returncode == 0, result.stderr
        assert result.stdout.strip() == "False [] ['kept']"


# =============================================================================
# Fatal
# =============================================================================

class TestFatal:
    """Test fatal()."""

    def test_fatal_logs_and_calls_handler_even_when_disabled(self, manager, recorder):
        calls = []

        def handler(value, channel, context):
            calls.append((value, channel))
            raise Stop()

        manager.install_fatal_error_handler(handler)
        ch = Channel("net", handlers=[recorder], manager=manager)
        assert ch.enabled is False
        with pytest.raises(Stop):
            ch.fatal(lambda: "boom")
        assert calls == [("boom", ch)]
        assert recorder.values == ["boom"]

    def test_fatal_never_returns(self, manager):
        manager.install_fatal_error_handler(lambda value, channel, context: None)
        ch = Channel("net", manager=manager, handlers=[])
        with pytest.raises(FatalHandlerReturned) as info:
            ch.fatal("boom")
        assert info.value.channel_name == "chanlog.net"
        assert info.value.value == "boom"


# =============================================================================
# Equality
# =============================================================================

class TestEquality:
    """Channels are equal on full name within one manager."""

    def test_same_full_name_same_manager(self, manager):
        a = Channel("myapp.net", manager=manager)
        b = Channel("myapp.net", manager=manager)
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_same_short_name_different_subsystem(self, manager):
        a = Channel("one.net", manager=manager)
        b = Channel("two.net", manager=manager)
        assert a != b

    def test_different_managers(self, make_manager):
        a = Channel("net", manager=make_manager())
        b = Channel("net", manager=make_manager())
        assert a != b

    def test_repr(self, manager):
        assert repr(Channel("myapp.net", manager=manager)) == \
            "Channel('myapp.net', disabled)"
