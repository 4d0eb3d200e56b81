"""Protocol constants and line parsing for the MPD text protocol.

The wire format is line based, UTF-8, ``\\n`` terminated::

    OK MPD 0.23.5                      greeting
    <verb> <arg> ...                   command
    <key>: <value>                     reply body
    OK                                 success terminator
    ACK [<code>@<index>] {<cmd>} <msg> error terminator
    list_OK                            member boundary in command_list_ok mode
"""

from __future__ import annotations

import re
from enum import Enum, IntEnum

from .errors import MPDHandshakeError, MPDProtocolError, ServerError


# --- Wire-format markers ---

GREETING_PREFIX = "OK MPD "
OK = "OK"
LIST_OK = "list_OK"
ACK_PREFIX = "ACK "
PAIR_SEP = ": "

COMMAND_LIST_BEGIN = "command_list_begin"
COMMAND_LIST_OK_BEGIN = "command_list_ok_begin"
COMMAND_LIST_END = "command_list_end"

IDLE = "idle"
NOIDLE = "noidle"
CHANGED_KEY = "changed"

ENCODING = "utf-8"

# --- Defaults ---

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6600

# --- Timeouts (seconds) ---

COMMAND_TIMEOUT = 30.0
CONNECTION_TIMEOUT = 5.0

# --- Buffer size ---

MAX_RECV = 4096


class AckCode(IntEnum):
    """Error codes the daemon reports in ACK lines."""

    NOT_LIST = 1
    ARG = 2
    PASSWORD = 3
    PERMISSION = 4
    UNKNOWN = 5
    NO_EXIST = 50
    PLAYLIST_MAX = 51
    SYSTEM = 52
    PLAYLIST_LOAD = 53
    UPDATE_ALREADY = 54
    PLAYER_SYNC = 55
    EXIST = 56


class Subsystem(str, Enum):
    """Subsystem names reported by ``changed:`` lines in idle replies."""

    DATABASE = "database"
    UPDATE = "update"
    STORED_PLAYLIST = "stored_playlist"
    PLAYLIST = "playlist"
    PLAYER = "player"
    MIXER = "mixer"
    OUTPUT = "output"
    OPTIONS = "options"
    PARTITION = "partition"
    STICKER = "sticker"
    SUBSCRIPTION = "subscription"
    MESSAGE = "message"
    NEIGHBOR = "neighbor"
    MOUNT = "mount"


# --- Line parsing ---

_ACK_RE = re.compile(r"^ACK \[(\d+)@(\d+)\] \{([^}]*)\} ?(.*)$")
_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_VERSION_RE = re.compile(r"^\d+(\.\d+)*$")


def parse_greeting(line: str) -> str:
    """Return the protocol version announced by a greeting line.

    Raises:
        MPDHandshakeError: If the line is not ``OK MPD <version>``.
    """
    if not line.startswith(GREETING_PREFIX):
        raise MPDHandshakeError(f"Unexpected greeting: {line!r}")
    version = line[len(GREETING_PREFIX) :].strip()
    if not _VERSION_RE.match(version):
        raise MPDHandshakeError(f"Invalid protocol version in greeting: {line!r}")
    return version


def version_tuple(version: str) -> tuple[int, ...]:
    """Split a dotted version string into a tuple of ints."""
    return tuple(int(part) for part in version.split("."))


def is_ack(line: str) -> bool:
    return line.startswith(ACK_PREFIX)


def parse_ack(line: str) -> ServerError:
    """Parse an ACK line into a ServerError (returned, not raised).

    Raises:
        MPDProtocolError: If the line starts with ACK but is malformed.
    """
    match = _ACK_RE.match(line)
    if match is None:
        raise MPDProtocolError(f"Malformed ACK line: {line!r}")
    code = int(match.group(1))
    try:
        code = AckCode(code)
    except ValueError:
        pass
    return ServerError(
        code=code,
        index=int(match.group(2)),
        command=match.group(3),
        message=match.group(4),
    )


def parse_pair(line: str) -> tuple[str, str]:
    """Split a ``key: value`` body line.

    The key is a bare word; the value is everything after the first
    ``": "`` and may be empty. A value that itself starts with the
    separator character (``key: :x``) is rejected as a doubled separator.

    Raises:
        MPDProtocolError: If the line does not match the grammar.
    """
    key, sep, value = line.partition(PAIR_SEP)
    if not sep:
        # "key:" with an empty value and no trailing space
        if line.endswith(":") and _KEY_RE.match(line[:-1]):
            return line[:-1], ""
        raise MPDProtocolError(f"Malformed response line: {line!r}")
    if not _KEY_RE.match(key) or value.startswith(":"):
        raise MPDProtocolError(f"Malformed response line: {line!r}")
    return key, value


def subsystem_for(name: str) -> Subsystem | str:
    """Map a subsystem name to the Subsystem enum, keeping unknown names."""
    try:
        return Subsystem(name)
    except ValueError:
        return name
