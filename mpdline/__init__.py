"""mpdline: a client engine for the Music Player Daemon text protocol.

Architecture:
    caller <--values / exceptions--> Connection
                                         |  Command -> quoted line
                                         |  ResponseReader <- key: value ... OK | ACK
                                         v
                                    LineChannel (TCP or Unix socket)
                                         |
                                         v
                                    MPD server
"""

__version__ = "0.1.0"

from .command import Command
from .connection import CommandList, Connection, ConnectionState, connect
from .errors import (
    MPDConnectionError,
    MPDError,
    MPDHandshakeError,
    MPDProtocolError,
    MPDStateError,
    MPDTimeoutError,
    ServerError,
)
from .idle import IdleController, IdleEvent
from .protocol import AckCode, Subsystem
from .quoting import quote, render_arg, split_args, unquote
from .response import ResponseReader, ResponseRecord

__all__ = [
    "AckCode",
    "Command",
    "CommandList",
    "Connection",
    "ConnectionState",
    "IdleController",
    "IdleEvent",
    "MPDConnectionError",
    "MPDError",
    "MPDHandshakeError",
    "MPDProtocolError",
    "MPDStateError",
    "MPDTimeoutError",
    "ResponseReader",
    "ResponseRecord",
    "ServerError",
    "Subsystem",
    "connect",
    "quote",
    "render_arg",
    "split_args",
    "unquote",
]
