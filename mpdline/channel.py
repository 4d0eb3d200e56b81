"""Buffered line I/O over a stream socket."""

import logging
import socket

from .errors import MPDConnectionError, MPDTimeoutError
from .protocol import COMMAND_TIMEOUT, ENCODING, MAX_RECV

logger = logging.getLogger(__name__)

# Sentinel meaning "use the channel's configured timeout".
USE_DEFAULT = object()


class LineChannel:
    """Read and write newline-terminated lines on a connected socket.

    The channel does no locking; the owning Connection enforces a
    single reader and serializes writers.
    """

    def __init__(self, sock: socket.socket, timeout: float | None = COMMAND_TIMEOUT) -> None:
        self._sock: socket.socket | None = sock
        self._buffer = b""
        self.timeout = timeout

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def read_line(self, timeout=USE_DEFAULT) -> str:
        """Read one line from the socket.

        Uses an internal buffer to handle partial reads.

        Args:
            timeout: Seconds to wait for data, None to block indefinitely.
                Defaults to the channel's timeout.

        Returns:
            The line content without the trailing newline.

        Raises:
            MPDTimeoutError: If no data arrives in time.
            MPDConnectionError: On EOF or socket error.
        """
        sock = self._require_socket()
        if timeout is USE_DEFAULT:
            timeout = self.timeout
        if timeout is not None and timeout < 0:
            timeout = 0
        try:
            sock.settimeout(timeout)
        except OSError as exc:
            raise MPDConnectionError(f"Socket error: {exc}") from exc

        while b"\n" not in self._buffer:
            try:
                chunk = sock.recv(MAX_RECV)
            except (socket.timeout, BlockingIOError) as exc:
                # BlockingIOError: a zero timeout makes the socket non-blocking
                raise MPDTimeoutError("Timed out waiting for response") from exc
            except OSError as exc:
                raise MPDConnectionError(f"Socket error: {exc}") from exc

            if not chunk:
                raise MPDConnectionError("Server closed connection")

            self._buffer += chunk

        raw, self._buffer = self._buffer.split(b"\n", 1)
        line = raw.decode(ENCODING, errors="replace")
        logger.debug("<< %s", line)
        return line

    def write_line(self, line: str) -> None:
        """Write one line, appending the newline terminator.

        Raises:
            MPDConnectionError: If the send fails.
        """
        sock = self._require_socket()
        logger.debug(">> %s", line)
        try:
            sock.sendall(f"{line}\n".encode(ENCODING))
        except socket.timeout as exc:
            raise MPDTimeoutError("Timed out sending command") from exc
        except OSError as exc:
            raise MPDConnectionError(f"Send failed: {exc}") from exc

    def write_lines(self, lines: list[str]) -> None:
        """Write several lines with a single send."""
        sock = self._require_socket()
        for line in lines:
            logger.debug(">> %s", line)
        payload = "".join(f"{line}\n" for line in lines).encode(ENCODING)
        try:
            sock.sendall(payload)
        except socket.timeout as exc:
            raise MPDTimeoutError("Timed out sending command list") from exc
        except OSError as exc:
            raise MPDConnectionError(f"Send failed: {exc}") from exc

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._sock is not None:
            # shutdown wakes a thread blocked in recv on this socket
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None
        self._buffer = b""

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise MPDConnectionError("Not connected")
        return self._sock
