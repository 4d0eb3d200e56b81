"""Tests for stored playlist operations."""

import pytest

from mpdline import playlists
from mpdline.errors import ServerError
from mpdline.protocol import AckCode


class TestPlaylistQueries:
    def test_list_playlists(self, server, conn):
        server.send("playlist: a b\nLast-Modified: 2024-02-01T00:00:00Z\nplaylist: c\nOK\n")
        result = playlists.list_playlists(conn)
        assert server.read_line() == "listplaylists"
        assert [p.name for p in result] == ["a b", "c"]

    def test_playlist_songs(self, server, conn):
        server.send("file: x.flac\nTitle: X\nfile: y.flac\nOK\n")
        songs = playlists.playlist_songs(conn, "road trip")
        assert server.read_line() == 'listplaylistinfo "road trip"'
        assert [s.file for s in songs] == ["x.flac", "y.flac"]

    def test_playlist_uris(self, server, conn):
        server.send("file: x.flac\nfile: y.flac\nOK\n")
        assert playlists.playlist_uris(conn, "p") == ["x.flac", "y.flac"]
        assert server.read_line() == "listplaylist p"


class TestPlaylistCommands:
    @pytest.mark.parametrize(
        "call, args, line",
        [
            (playlists.playlist_add, ("p", "a b.flac"), 'playlistadd p "a b.flac"'),
            (playlists.playlist_clear, ("p",), "playlistclear p"),
            (playlists.playlist_delete, ("p", 3), "playlistdelete p 3"),
            (playlists.playlist_move, ("p", 1, 4), "playlistmove p 1 4"),
            (playlists.rename_playlist, ("old", "new name"), 'rename old "new name"'),
            (playlists.remove_playlist, ("p",), "rm p"),
            (playlists.load_playlist, ("p",), "load p"),
            (playlists.save_playlist, ("p",), "save p"),
        ],
    )
    def test_command_line(self, server, conn, call, args, line):
        server.send("OK\n")
        call(conn, *args)
        assert server.read_line() == line

    def test_missing_playlist(self, server, conn):
        server.send("ACK [50@0] {rm} No such playlist\n")
        with pytest.raises(ServerError) as info:
            playlists.remove_playlist(conn, "ghost")
        assert info.value.code is AckCode.NO_EXIST
