"""Client settings resolved from the environment.

Follows the conventions of other MPD clients: MPD_HOST may carry a
password as ``password@host``, and MPD_PORT selects the TCP port.
"""

import os
from dataclasses import dataclass

from .protocol import COMMAND_TIMEOUT, DEFAULT_HOST, DEFAULT_PORT


@dataclass(frozen=True, slots=True)
class ClientSettings:
    """Where and how to connect.

    Attributes:
        host: Hostname, IP address, or Unix socket path.
        port: TCP port.
        password: Optional password sent after the handshake.
        timeout: Reply timeout in seconds.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    password: str | None = None
    timeout: float = COMMAND_TIMEOUT

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ClientSettings":
        """Build settings from MPD_HOST, MPD_PORT and MPD_TIMEOUT.

        Raises:
            ValueError: If MPD_PORT or MPD_TIMEOUT is not a number.
        """
        env = os.environ if environ is None else environ
        host, password = split_host(env.get("MPD_HOST", DEFAULT_HOST))
        port = int(env.get("MPD_PORT", DEFAULT_PORT))
        timeout = float(env.get("MPD_TIMEOUT", COMMAND_TIMEOUT))
        return cls(host=host, port=port, password=password, timeout=timeout)


def split_host(value: str) -> tuple[str, str | None]:
    """Split ``password@host`` into (host, password).

    A leading "@" is an abstract Unix socket name, not a password
    separator, and socket paths never carry a password.
    """
    if not value:
        return DEFAULT_HOST, None
    if value.startswith(("@", "/")):
        return value, None
    password, sep, host = value.rpartition("@")
    if not sep:
        return value, None
    return host or DEFAULT_HOST, password or None
