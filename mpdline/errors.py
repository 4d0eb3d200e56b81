"""Exception hierarchy for the MPD protocol client.

Every public operation either returns a value or raises one of these.
Transport and parse failures leave the connection unusable; a ServerError
(a well-formed ACK line) does not.
"""

from __future__ import annotations


class MPDError(Exception):
    """Base class for all client errors."""


class MPDConnectionError(MPDError):
    """Raised when the socket connection fails or is lost."""


class MPDTimeoutError(MPDConnectionError):
    """Raised when no data arrives within the configured deadline."""


class MPDProtocolError(MPDError):
    """Raised when a line from the server does not match the protocol grammar."""


class MPDHandshakeError(MPDProtocolError):
    """Raised when the first line from the server is not a valid greeting."""


class MPDStateError(MPDError):
    """Raised when an operation is not allowed in the connection's current state.

    This always indicates a caller bug; it never originates from the wire
    and the transport is not touched when it is raised.
    """


class ServerError(MPDError):
    """Raised for an ``ACK [code@index] {command} message`` reply.

    Attributes:
        code: Numeric error code, an ``AckCode`` member when known.
        index: Zero-based position of the failing command in a command list
            (0 for a single command).
        command: Name of the command the server rejected (may be empty).
        message: Human-readable message, verbatim.
    """

    def __init__(self, code: int, index: int, command: str, message: str) -> None:
        super().__init__(f"[{int(code)}@{index}] {{{command}}} {message}")
        self.code = code
        self.index = index
        self.command = command
        self.message = message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ServerError):
            return NotImplemented
        return (
            int(self.code) == int(other.code)
            and self.index == other.index
            and self.command == other.command
            and self.message == other.message
        )

    def __hash__(self) -> int:
        return hash((int(self.code), self.index, self.command, self.message))

    def __repr__(self) -> str:
        return (
            f"ServerError(code={self.code!r}, index={self.index}, "
            f"command={self.command!r}, message={self.message!r})"
        )
