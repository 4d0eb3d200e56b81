"""Shared test fixtures for the mpdline test suite."""

import socket

import pytest

from mpdline.connection import Connection

GREETING = "OK MPD 0.23.5\n"


class FakeServer:
    """The server end of a socketpair, scripted by the test.

    Replies can be queued before the client asks for them; the socket
    buffers them until the client reads.
    """

    def __init__(self) -> None:
        self.client_sock, self.sock = socket.socketpair()
        self.sock.settimeout(2.0)
        self._buffer = b""

    def send(self, text: str) -> None:
        self.sock.sendall(text.encode("utf-8"))

    def read_line(self) -> str:
        while b"\n" not in self._buffer:
            chunk = self.sock.recv(4096)
            if not chunk:
                raise EOFError("client closed the socket")
            self._buffer += chunk
        line, self._buffer = self._buffer.split(b"\n", 1)
        return line.decode("utf-8")

    def read_lines(self, count: int) -> list[str]:
        return [self.read_line() for _ in range(count)]

    def nothing_received(self, wait: float = 0.05) -> bool:
        """True if the client wrote nothing beyond what was already read."""
        if self._buffer:
            return False
        self.sock.settimeout(wait)
        try:
            chunk = self.sock.recv(4096)
        except socket.timeout:
            return True
        finally:
            self.sock.settimeout(2.0)
        self._buffer += chunk
        return not chunk

    def close(self) -> None:
        for sock in (self.sock, self.client_sock):
            try:
                sock.close()
            except OSError:
                pass


@pytest.fixture
def server():
    """A fake MPD server end with no greeting sent yet."""
    fake = FakeServer()
    yield fake
    fake.close()


@pytest.fixture
def conn(server):
    """A Connection that has completed the handshake against the fake server."""
    server.send(GREETING)
    connection = Connection.from_socket(server.client_sock, timeout=2.0)
    yield connection
    connection.close()
