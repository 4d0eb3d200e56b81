"""Tests for the click entry point, display helpers, and REPL dot-commands."""

import pytest
from click.testing import CliRunner

from mpdline import main
from mpdline.connection import Connection
from mpdline.display import format_error, format_idle_event, format_record
from mpdline.errors import MPDConnectionError, ServerError
from mpdline.idle import IdleEvent
from mpdline.repl import QUIT, handle_dot_command, wait_interruptibly
from mpdline.response import ResponseRecord

from .conftest import GREETING


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fake_connect(server, monkeypatch):
    """Route main.connect() to the fake server and record its arguments."""
    calls = []

    def connect(host, port, timeout=None, password=None):
        calls.append({"host": host, "port": port, "timeout": timeout, "password": password})
        server.send(GREETING)
        return Connection.from_socket(server.client_sock, timeout=2.0)

    monkeypatch.setattr(main, "connect", connect)
    return calls


class TestSendCommand:
    def test_prints_pairs(self, runner, server, fake_connect):
        server.send("volume: 42\nstate: pause\nOK\n")
        result = runner.invoke(main.cli, ["send", "status"], env={})
        assert result.exit_code == 0, result.output
        assert "volume" in result.output
        assert "42" in result.output
        assert server.read_line() == "status"

    def test_args_quoted(self, runner, server, fake_connect):
        server.send("OK\n")
        result = runner.invoke(main.cli, ["send", "add", "a b.flac"], env={})
        assert result.exit_code == 0
        assert server.read_line() == 'add "a b.flac"'
        assert "OK" in result.output

    def test_single_string_is_split(self, runner, server, fake_connect):
        server.send("OK\n")
        runner.invoke(main.cli, ["send", 'add "a b.flac"'], env={})
        assert server.read_line() == 'add "a b.flac"'

    def test_server_error_exits_1(self, runner, server, fake_connect):
        server.send("ACK [50@0] {play} No such song\n")
        result = runner.invoke(main.cli, ["send", "play", "99"], env={})
        assert result.exit_code == 1
        assert "No such song" in result.output

    def test_options_override_env(self, runner, server, fake_connect):
        server.send("OK\n")
        runner.invoke(
            main.cli,
            ["--host", "pw@box", "--port", "7000", "--timeout", "3", "send", "ping"],
            env={"MPD_HOST": "other", "MPD_PORT": "6601"},
        )
        assert fake_connect == [
            {"host": "box", "port": 7000, "timeout": 3.0, "password": "pw"}
        ]

    def test_env_settings(self, runner, server, fake_connect):
        server.send("OK\n")
        runner.invoke(
            main.cli, ["send", "ping"], env={"MPD_HOST": "secret@music", "MPD_PORT": "6601"}
        )
        assert fake_connect[0]["host"] == "music"
        assert fake_connect[0]["port"] == 6601
        assert fake_connect[0]["password"] == "secret"

    def test_bad_env_is_usage_error(self, runner):
        result = runner.invoke(main.cli, ["send", "ping"], env={"MPD_PORT": "x"})
        assert result.exit_code == 2

    def test_connection_failure(self, runner, monkeypatch):
        def refuse(*args, **kwargs):
            raise MPDConnectionError("Cannot connect to localhost:6600: refused")

        monkeypatch.setattr(main, "connect", refuse)
        result = runner.invoke(main.cli, ["send", "ping"], env={})
        assert result.exit_code == 1
        assert "Connection failed" in result.output


class TestIdleCommand:
    def test_prints_events(self, runner, server, fake_connect):
        server.send("changed: player\nOK\nchanged: mixer\nOK\n")
        result = runner.invoke(main.cli, ["idle", "--count", "2"], env={})
        assert result.exit_code == 0, result.output
        assert "player" in result.output
        assert "mixer" in result.output
        assert server.read_lines(2) == ["idle", "idle"]

    def test_subsystem_filter(self, runner, server, fake_connect):
        server.send("changed: mixer\nOK\n")
        runner.invoke(main.cli, ["idle", "--count", "1", "mixer"], env={})
        assert server.read_line() == "idle mixer"


class TestDisplay:
    def test_empty_record(self):
        assert format_record(ResponseRecord()) == "[green]OK[/green]"

    def test_record_table(self):
        table = format_record(ResponseRecord(pairs=(("file", "a"), ("file", "b"))))
        assert table.row_count == 2

    def test_error_markup(self):
        text = format_error(ServerError(50, 0, "play", "No such song"))
        assert "50@0" in text
        assert "{play}" in text

    def test_idle_event(self):
        assert "player" in format_idle_event(IdleEvent(frozenset({"player"})))
        assert "no changes" in format_idle_event(IdleEvent())


class TestDotCommands:
    def test_quit(self):
        assert handle_dot_command(".quit") is QUIT

    def test_help(self):
        assert handle_dot_command(".help") is None

    def test_unknown(self):
        assert handle_dot_command(".bogus") is None


class TestWaitInterruptibly:
    def test_returns_event(self, server, conn):
        server.send("changed: mixer\nOK\n")
        event = wait_interruptibly(conn, ("mixer",))
        assert event.subsystems == frozenset({"mixer"})
        assert server.read_line() == "idle mixer"

    def test_worker_error_is_raised(self):
        class BrokenConnection:
            def idle(self, *subsystems, timeout=None):
                raise RuntimeError("idle failed")

        with pytest.raises(RuntimeError, match="idle failed"):
            wait_interruptibly(BrokenConnection(), ())
