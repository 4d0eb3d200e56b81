"""Connection lifecycle and command dispatch for the MPD protocol.

Usage::

    with connect("localhost", 6600) as conn:
        status = conn.execute("status").as_dict()
        for key, value in conn.send("listplaylists"):
            ...
        event = conn.idle("player", "mixer")

A connection carries at most one command at a time. send() returns a
ResponseReader that must be read to its terminator before the next
command; until then every other operation raises MPDStateError.
"""

from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Iterable
from enum import Enum

from .channel import USE_DEFAULT, LineChannel
from .command import Command, command_list_lines
from .errors import (
    MPDConnectionError,
    MPDError,
    MPDProtocolError,
    MPDStateError,
    MPDTimeoutError,
)
from .idle import IdleController, IdleEvent
from .protocol import (
    COMMAND_TIMEOUT,
    CONNECTION_TIMEOUT,
    DEFAULT_PORT,
    NOIDLE,
    parse_greeting,
    version_tuple,
)
from .response import ResponseReader, ResponseRecord

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    HANDSHAKING = "handshaking"
    READY = "ready"
    COMMAND_IN_FLIGHT = "command_in_flight"
    IDLE_BLOCKING = "idle_blocking"
    CLOSED = "closed"
    POISONED = "poisoned"


class Connection:
    """One protocol session with an MPD server.

    Create instances with connect() or Connection.from_socket(); both
    perform the greeting handshake.
    """

    def __init__(self, channel: LineChannel) -> None:
        self._channel = channel
        # Guards _state and every write to the channel.
        self._lock = threading.RLock()
        self._state = ConnectionState.HANDSHAKING
        self._failure: Exception | None = None
        self.version = ""
        self._idle = IdleController(self)

    # --- Connection lifecycle ---

    @classmethod
    def from_socket(
        cls, sock: socket.socket, timeout: float | None = COMMAND_TIMEOUT
    ) -> Connection:
        """Wrap an already connected socket and perform the handshake.

        Raises:
            MPDHandshakeError: If the first line is not ``OK MPD <version>``.
            MPDConnectionError: If the greeting cannot be read.
        """
        conn = cls(LineChannel(sock, timeout))
        conn._handshake()
        return conn

    def _handshake(self) -> None:
        try:
            line = self._channel.read_line()
            self.version = parse_greeting(line)
        except MPDError as exc:
            self._poison(exc)
            raise
        with self._lock:
            self._state = ConnectionState.READY
        logger.debug("Connected, protocol version %s", self.version)

    @property
    def version_info(self) -> tuple[int, ...]:
        """Protocol version as a tuple of ints, e.g. (0, 23, 5)."""
        return version_tuple(self.version)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ConnectionState.READY

    @property
    def is_closed(self) -> bool:
        return self._state in (ConnectionState.CLOSED, ConnectionState.POISONED)

    @property
    def failure(self) -> Exception | None:
        """The error that poisoned this connection, if any."""
        return self._failure

    def authenticate(self, password: str) -> None:
        """Send the password command.

        Raises:
            ServerError: If the server rejects the password.
        """
        self.execute("password", password)

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        with self._lock:
            if self.is_closed:
                self._state = ConnectionState.CLOSED
                return
            if self._state is ConnectionState.READY:
                try:
                    self._channel.write_line("close")
                except MPDConnectionError:
                    pass
            self._state = ConnectionState.CLOSED
            self._channel.close()
        logger.debug("Connection closed")

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Connection version={self.version!r} state={self._state.value}>"

    # --- Command sending ---

    def send(self, command: Command | str, *args: object) -> ResponseReader:
        """Send one command and return a reader for its reply.

        Args:
            command: A Command, or a verb whose arguments follow.

        Raises:
            MPDStateError: If the connection is not ready. Nothing is written.
            MPDConnectionError: If the write fails.
        """
        cmd = _as_command(command, args)
        with self._lock:
            self._require_ready()
            self._write([cmd.to_line()])
            self._state = ConnectionState.COMMAND_IN_FLIGHT
        return ResponseReader(
            self._channel, on_done=self._reply_done, on_failure=self._poison
        )

    def execute(self, command: Command | str, *args: object) -> ResponseRecord:
        """Send a command and read its whole reply.

        Raises:
            ServerError: If the server answers with ACK.
        """
        return self.send(command, *args).read_record()

    def command_list(
        self, commands: Iterable[Command | str | tuple]
    ) -> list[ResponseRecord]:
        """Run several commands in one command_list_ok_begin batch.

        The server stops at the first failing member. The result holds one
        record per executed member; the last one carries the ServerError
        when a member failed, and later members are absent.

        Args:
            commands: Command objects, bare verbs, or (verb, *args) tuples.
        """
        cmds = [_coerce(item) for item in commands]
        with self._lock:
            self._require_ready()
            if not cmds:
                return []
            self._write(command_list_lines(cmds))
            self._state = ConnectionState.COMMAND_IN_FLIGHT

        reader = ResponseReader(
            self._channel,
            on_done=self._reply_done,
            on_failure=self._poison,
            list_mode=True,
        )
        results: list[ResponseRecord] = []
        for _ in cmds:
            record = reader.collect()
            if record.error is not None:
                results.append(record)
                return results
            if not reader.at_boundary:
                self._protocol_failure(
                    f"Command list ended after {len(results)} of {len(cmds)} replies"
                )
            results.append(record)
            reader.next_member()

        trailing = reader.collect()
        if trailing.pairs or trailing.error is not None or reader.at_boundary:
            self._protocol_failure("Unexpected data after command list replies")
        return results

    def batch(self) -> CommandList:
        """Start a CommandList bound to this connection."""
        return CommandList(self)

    # --- Idle ---

    def idle(self, *subsystems: str, timeout: float | None = None) -> IdleEvent:
        """Block until the server reports a change (see IdleController.idle)."""
        return self._idle.idle(*subsystems, timeout=timeout)

    def noidle(self) -> bool:
        """Cancel a pending idle() from another thread.

        Returns:
            True if noidle was written, False if no idle wait was active.
        """
        return self._idle.cancel()

    @property
    def idle_controller(self) -> IdleController:
        return self._idle

    # --- Internal state handling ---

    def _require_ready(self) -> None:
        state = self._state
        if state is ConnectionState.READY:
            return
        if state is ConnectionState.COMMAND_IN_FLIGHT:
            raise MPDStateError("Previous reply has not been fully read")
        if state is ConnectionState.IDLE_BLOCKING:
            raise MPDStateError("Connection is idle; only noidle may be sent")
        if state is ConnectionState.POISONED:
            raise MPDStateError(f"Connection is unusable after error: {self._failure}")
        raise MPDStateError(f"Connection is {state.value}")

    def _write(self, lines: list[str]) -> None:
        try:
            if len(lines) == 1:
                self._channel.write_line(lines[0])
            else:
                self._channel.write_lines(lines)
        except MPDConnectionError as exc:
            self._poison(exc)
            raise

    def _enter_idle(self, line: str) -> None:
        """Write an idle command and mark the connection as blocked in idle."""
        with self._lock:
            self._require_ready()
            self._write([line])
            self._state = ConnectionState.IDLE_BLOCKING

    def _write_noidle(self) -> None:
        with self._lock:
            if self.is_closed:
                self._require_ready()
            self._write([NOIDLE])

    def _read_line(self, timeout=USE_DEFAULT) -> str:
        return self._channel.read_line(timeout)

    def _reply_done(self) -> None:
        with self._lock:
            if self._state in (
                ConnectionState.COMMAND_IN_FLIGHT,
                ConnectionState.IDLE_BLOCKING,
            ):
                self._state = ConnectionState.READY

    def _poison(self, exc: Exception) -> None:
        with self._lock:
            if self._state is not ConnectionState.CLOSED:
                self._state = ConnectionState.POISONED
            self._failure = exc
            self._channel.close()
        logger.debug("Connection poisoned: %s", exc)

    def _protocol_failure(self, message: str) -> None:
        exc = MPDProtocolError(message)
        self._poison(exc)
        raise exc


class CommandList:
    """Collects commands and runs them as one batch.

    Usage::

        with conn.batch() as batch:
            batch.add("add", "a.flac").add("add", "b.flac")
        records = batch.results
    """

    def __init__(self, connection: Connection) -> None:
        self._connection = connection
        self._commands: list[Command] = []
        self.results: list[ResponseRecord] | None = None

    def add(self, verb: str, *args: object) -> CommandList:
        if self.results is not None:
            raise MPDStateError("Command list has already run")
        self._commands.append(Command(verb, args))
        return self

    def run(self) -> list[ResponseRecord]:
        if self.results is not None:
            raise MPDStateError("Command list has already run")
        self.results = self._connection.command_list(self._commands)
        return self.results

    def __len__(self) -> int:
        return len(self._commands)

    def __enter__(self) -> CommandList:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.run()


def connect(
    host: str,
    port: int = DEFAULT_PORT,
    timeout: float | None = COMMAND_TIMEOUT,
    password: str | None = None,
) -> Connection:
    """Open a connection to an MPD server.

    Args:
        host: Hostname or IP address, or a Unix socket path starting with
            "/" ("@" selects the abstract namespace).
        port: TCP port, ignored for Unix sockets.
        timeout: Read timeout in seconds for replies, None to block.
        password: Sent with the password command right after the handshake.

    Raises:
        MPDConnectionError: If the socket cannot be opened.
        MPDHandshakeError: If the server greeting is invalid.
        ServerError: If the password is rejected.
    """
    try:
        if host.startswith(("/", "@")):
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            sock.settimeout(CONNECTION_TIMEOUT)
            try:
                sock.connect("\0" + host[1:] if host.startswith("@") else host)
            except OSError:
                sock.close()
                raise
        else:
            sock = socket.create_connection((host, port), timeout=CONNECTION_TIMEOUT)
    except socket.timeout as exc:
        raise MPDTimeoutError(f"Timed out connecting to {host}:{port}") from exc
    except OSError as exc:
        raise MPDConnectionError(f"Cannot connect to {host}:{port}: {exc}") from exc

    conn = Connection.from_socket(sock, timeout)
    if password:
        try:
            conn.authenticate(password)
        except MPDError:
            conn.close()
            raise
    return conn


def _as_command(command: Command | str, args: tuple) -> Command:
    if isinstance(command, Command):
        if args:
            raise TypeError("Extra arguments are not allowed with a Command")
        return command
    return Command(command, args)


def _coerce(item: Command | str | tuple) -> Command:
    if isinstance(item, Command):
        return item
    if isinstance(item, str):
        return Command(item)
    verb, *args = item
    return Command(verb, tuple(args))
