"""Stored playlist operations.

Thin wrappers over the dispatcher; each function runs one command and
raises ServerError if the server rejects it.
"""

from __future__ import annotations

from .connection import Connection
from .records import Playlist, Song


def list_playlists(conn: Connection) -> list[Playlist]:
    """Return all stored playlists."""
    return Playlist.from_pairs(conn.execute("listplaylists"))


def playlist_songs(conn: Connection, name: str) -> list[Song]:
    """Return the songs of a stored playlist with their tags."""
    return Song.from_pairs(conn.execute("listplaylistinfo", name))


def playlist_uris(conn: Connection, name: str) -> list[str]:
    """Return only the song URIs of a stored playlist."""
    return conn.execute("listplaylist", name).get_all("file")


def playlist_add(conn: Connection, name: str, uri: str) -> None:
    conn.execute("playlistadd", name, uri)


def playlist_clear(conn: Connection, name: str) -> None:
    conn.execute("playlistclear", name)


def playlist_delete(conn: Connection, name: str, pos: int) -> None:
    """Remove the song at position pos from the playlist."""
    conn.execute("playlistdelete", name, pos)


def playlist_move(conn: Connection, name: str, from_pos: int, to_pos: int) -> None:
    conn.execute("playlistmove", name, from_pos, to_pos)


def rename_playlist(conn: Connection, name: str, new_name: str) -> None:
    conn.execute("rename", name, new_name)


def remove_playlist(conn: Connection, name: str) -> None:
    conn.execute("rm", name)


def load_playlist(conn: Connection, name: str) -> None:
    """Append the playlist to the queue."""
    conn.execute("load", name)


def save_playlist(conn: Connection, name: str) -> None:
    """Save the current queue as a stored playlist."""
    conn.execute("save", name)
