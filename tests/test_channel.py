"""Tests for buffered line reading and writing."""

import pytest

from mpdline.channel import LineChannel
from mpdline.errors import MPDConnectionError, MPDTimeoutError


@pytest.fixture
def channel(server):
    chan = LineChannel(server.client_sock, timeout=2.0)
    yield chan
    chan.close()


class TestReadLine:
    def test_strips_newline(self, server, channel):
        server.send("OK\n")
        assert channel.read_line() == "OK"

    def test_several_lines_in_one_chunk(self, server, channel):
        server.send("a: 1\nb: 2\nOK\n")
        assert [channel.read_line() for _ in range(3)] == ["a: 1", "b: 2", "OK"]

    def test_partial_reads_are_joined(self, server, channel):
        server.send("vol")
        server.send("ume: 5")
        server.send("0\n")
        assert channel.read_line() == "volume: 50"

    def test_utf8_split_across_chunks(self, server, channel):
        data = "Artist: Motörhead\n".encode("utf-8")
        split = data.index("ö".encode("utf-8")) + 1
        server.sock.sendall(data[:split])
        server.sock.sendall(data[split:])
        assert channel.read_line() == "Artist: Motörhead"

    def test_invalid_utf8_replaced(self, server, channel):
        server.sock.sendall(b"Title: \xff\n")
        assert channel.read_line() == "Title: �"

    def test_timeout(self, server):
        chan = LineChannel(server.client_sock, timeout=0.05)
        with pytest.raises(MPDTimeoutError, match="Timed out"):
            chan.read_line()

    def test_timeout_override(self, server, channel):
        with pytest.raises(MPDTimeoutError):
            channel.read_line(0.05)

    def test_zero_timeout(self, server, channel):
        with pytest.raises(MPDTimeoutError):
            channel.read_line(0)
        server.send("OK\n")
        assert channel.read_line() == "OK"

    def test_negative_timeout(self, server, channel):
        with pytest.raises(MPDTimeoutError):
            channel.read_line(-1)

    def test_timeout_is_connection_error(self, server, channel):
        with pytest.raises(MPDConnectionError):
            channel.read_line(0.05)

    def test_eof(self, server, channel):
        server.sock.close()
        with pytest.raises(MPDConnectionError, match="closed connection"):
            channel.read_line()


class TestWriteLine:
    def test_appends_newline(self, server, channel):
        channel.write_line("status")
        assert server.read_line() == "status"

    def test_write_lines(self, server, channel):
        channel.write_lines(["command_list_ok_begin", "status", "command_list_end"])
        assert server.read_lines(3) == ["command_list_ok_begin", "status", "command_list_end"]


class TestClose:
    def test_close_is_idempotent(self, channel):
        channel.close()
        channel.close()
        assert channel.is_open is False

    def test_read_after_close(self, channel):
        channel.close()
        with pytest.raises(MPDConnectionError, match="Not connected"):
            channel.read_line()

    def test_write_after_close(self, channel):
        channel.close()
        with pytest.raises(MPDConnectionError, match="Not connected"):
            channel.write_line("ping")
