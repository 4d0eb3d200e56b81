"""Interactive REPL for sending raw protocol commands.

Reads lines via prompt_toolkit, tokenizes them the way the server does,
sends them over the connection and prints the reply. Lines between
``command_list_begin`` and ``command_list_end`` are collected and sent
as one batch.
"""

import threading

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.formatted_text import HTML

from .command import Command
from .connection import Connection
from .display import console, format_error, format_idle_event, format_record, print_records
from .errors import MPDConnectionError, MPDError, ServerError
from .history import get_history
from .protocol import COMMAND_LIST_BEGIN, COMMAND_LIST_END, COMMAND_LIST_OK_BEGIN
from .quoting import split_args

# Sentinel return value for the REPL loop
QUIT = object()

# Common verbs offered for completion; anything else is still sent as typed.
COMMON_VERBS = [
    "status", "stats", "currentsong", "play", "pause", "stop", "next",
    "previous", "seek", "seekcur", "setvol", "volume", "repeat", "random",
    "single", "consume", "playlistinfo", "plchanges", "add", "addid",
    "clear", "delete", "deleteid", "move", "shuffle", "listplaylists",
    "listplaylist", "listplaylistinfo", "playlistadd", "playlistclear",
    "playlistdelete", "playlistmove", "rename", "rm", "load", "save",
    "lsinfo", "list", "find", "search", "update", "outputs",
    "enableoutput", "disableoutput", "commands", "notcommands",
    "tagtypes", "urlhandlers", "ping", "idle",
    COMMAND_LIST_BEGIN, COMMAND_LIST_OK_BEGIN, COMMAND_LIST_END,
]

DOT_COMMANDS = [".help", ".quit"]

HELP_TEXT = """\
Type protocol commands exactly as MPD expects them, for example:
  status
  add "Some Artist/Some Album/01 Track.flac"
  idle player mixer
Wrap several commands in command_list_begin / command_list_end to batch them.
  .help    show this text
  .quit    close the connection and exit"""


def run_repl(conn: Connection) -> None:
    """Run the interactive REPL loop.

    Args:
        conn: A connected Connection.
    """
    session: PromptSession = PromptSession(history=get_history())
    completer = WordCompleter(COMMON_VERBS + DOT_COMMANDS, sentence=True)
    pending: list[Command] | None = None

    try:
        while True:
            prompt = HTML("<b>list&gt;</b> ") if pending is not None else _prompt(conn)
            try:
                line = session.prompt(prompt, completer=completer)
            except EOFError:
                console.print("\nGoodbye")
                break
            except KeyboardInterrupt:
                continue

            trimmed = line.strip()
            if not trimmed:
                continue

            if trimmed.startswith("."):
                if handle_dot_command(trimmed) is QUIT:
                    console.print("Goodbye")
                    break
                continue

            try:
                words = split_args(trimmed)
            except MPDError as exc:
                console.print(f"[red]Parse error:[/red] {exc}")
                continue
            verb, args = words[0], tuple(words[1:])

            if verb in (COMMAND_LIST_BEGIN, COMMAND_LIST_OK_BEGIN):
                pending = []
                continue
            if verb == COMMAND_LIST_END:
                if pending is None:
                    console.print("[red]Not inside a command list[/red]")
                    continue
                batch, pending = pending, None
                if not _run_and_print(lambda: print_records(conn.command_list(batch))):
                    break
                continue

            try:
                command = Command(verb, args)
            except ValueError as exc:
                console.print(f"[red]Error:[/red] {exc}")
                continue

            if pending is not None:
                pending.append(command)
                continue

            if not _run_and_print(lambda: _execute(conn, command)):
                break
    finally:
        conn.close()


def handle_dot_command(line: str) -> object | None:
    """Handle a dot-command (line starting with '.').

    Returns:
        QUIT to end the loop, otherwise None.
    """
    lower = line.strip().lower()
    if lower == ".quit":
        return QUIT
    if lower == ".help":
        console.print(HELP_TEXT, highlight=False)
        return None
    console.print(f"[red]Unknown command: {line}[/red]")
    return None


def _execute(conn: Connection, command: Command) -> None:
    if command.verb == "idle":
        event = wait_interruptibly(conn, command.args)
        console.print(format_idle_event(event))
        return
    record = conn.send(command).collect()
    if record.error is not None:
        console.print(format_error(record.error))
    else:
        console.print(format_record(record))


def _run_and_print(action) -> bool:
    """Run an action, printing errors.

    Returns:
        False if the connection is no longer usable.
    """
    try:
        action()
    except ServerError as exc:
        console.print(format_error(exc))
    except MPDConnectionError as exc:
        console.print(f"[red]Connection lost:[/red] {exc}")
        return False
    except MPDError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return False
    return True


def _prompt(conn: Connection) -> HTML:
    return HTML(f"<b>mpd {conn.version}</b>&gt; ")


def wait_interruptibly(conn: Connection, subsystems: tuple, timeout: float | None = None):
    """Run conn.idle() in a worker thread so Ctrl-C can cancel it.

    On KeyboardInterrupt the main thread sends noidle and waits for the
    worker to read the server's reply.
    """
    result: dict = {}

    def worker() -> None:
        try:
            result["event"] = conn.idle(*subsystems, timeout=timeout)
        except Exception as exc:
            result["error"] = exc

    thread = threading.Thread(target=worker, name="mpdline-idle", daemon=True)
    thread.start()
    try:
        while thread.is_alive():
            thread.join(0.2)
    except KeyboardInterrupt:
        # The worker may not have entered idle yet; noidle is a no-op then.
        while thread.is_alive():
            conn.noidle()
            thread.join(0.2)

    if "error" in result:
        raise result["error"]
    return result["event"]
