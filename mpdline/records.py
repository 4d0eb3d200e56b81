"""Typed views over response pairs.

Replies that list several entities (songs, playlists, outputs) are flat
pair sequences: a new entity starts each time one of its start keys
appears. group_pairs() splits them, and the dataclasses below give each
group typed fields. Tags not modelled as fields are kept in ``extra``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

Pairs = Iterable[tuple[str, str]]

SONG_START_KEYS = ("file",)
PLAYLIST_START_KEYS = ("playlist",)
OUTPUT_START_KEYS = ("outputid",)
# lsinfo mixes entity kinds in one reply
ENTRY_START_KEYS = ("file", "directory", "playlist")


def group_pairs(pairs: Pairs, start_keys: Iterable[str]) -> list[dict[str, str | list[str]]]:
    """Split a pair sequence into one dict per entity.

    Each dict starts at a pair whose key is in start_keys. Pairs seen
    before the first start key are dropped. Repeated keys inside one
    entity collect into a list.
    """
    starts = frozenset(start_keys)
    groups: list[dict[str, str | list[str]]] = []
    current: dict[str, str | list[str]] | None = None

    for key, value in pairs:
        if key in starts:
            current = {}
            groups.append(current)
        if current is None:
            continue
        if key not in current:
            current[key] = value
        elif isinstance(current[key], list):
            current[key].append(value)
        else:
            current[key] = [current[key], value]
    return groups


def _first(value: str | list[str] | None) -> str | None:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _int(value: str | list[str] | None) -> int | None:
    text = _first(value)
    if text is None or text == "":
        return None
    return int(text)


def _float(value: str | list[str] | None) -> float | None:
    text = _first(value)
    if text is None or text == "":
        return None
    return float(text)


def parse_timestamp(text: str | None) -> datetime | None:
    """Parse an ISO-8601 UTC timestamp such as 2024-01-31T12:00:00Z."""
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    stamp = datetime.fromisoformat(text)
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


def _split_fields(group: dict, known: Iterable[str]) -> dict[str, str | list[str]]:
    known_keys = set(known)
    return {k: v for k, v in group.items() if k not in known_keys}


@dataclass(frozen=True, slots=True)
class Song:
    """A song from the queue, database or a stored playlist."""

    file: str
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    duration: float | None = None
    pos: int | None = None
    id: int | None = None
    last_modified: datetime | None = None
    extra: dict[str, str | list[str]] = field(default_factory=dict)

    _FIELDS = {
        "file": "file",
        "Title": "title",
        "Artist": "artist",
        "Album": "album",
        "duration": "duration",
        "Time": "duration",
        "Pos": "pos",
        "Id": "id",
        "Last-Modified": "last_modified",
    }

    @classmethod
    def from_group(cls, group: dict[str, str | list[str]]) -> Song:
        duration = _float(group.get("duration"))
        if duration is None:
            duration = _float(group.get("Time"))
        return cls(
            file=_first(group["file"]),
            title=_first(group.get("Title")),
            artist=_first(group.get("Artist")),
            album=_first(group.get("Album")),
            duration=duration,
            pos=_int(group.get("Pos")),
            id=_int(group.get("Id")),
            last_modified=parse_timestamp(_first(group.get("Last-Modified"))),
            extra=_split_fields(group, cls._FIELDS),
        )

    @classmethod
    def from_pairs(cls, pairs: Pairs) -> list[Song]:
        return [cls.from_group(g) for g in group_pairs(pairs, SONG_START_KEYS)]

    def __str__(self) -> str:
        if self.artist and self.title:
            return f"{self.artist} - {self.title}"
        return self.title or self.file


@dataclass(frozen=True, slots=True)
class Playlist:
    """A stored playlist as reported by listplaylists."""

    name: str
    last_modified: datetime | None = None

    @classmethod
    def from_pairs(cls, pairs: Pairs) -> list[Playlist]:
        return [
            cls(
                name=_first(g["playlist"]),
                last_modified=parse_timestamp(_first(g.get("Last-Modified"))),
            )
            for g in group_pairs(pairs, PLAYLIST_START_KEYS)
        ]


@dataclass(frozen=True, slots=True)
class Output:
    """An audio output."""

    id: int
    name: str
    plugin: str | None
    enabled: bool
    attributes: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_pairs(cls, pairs: Pairs) -> list[Output]:
        outputs = []
        for g in group_pairs(pairs, OUTPUT_START_KEYS):
            attrs = g.get("attribute", [])
            if isinstance(attrs, str):
                attrs = [attrs]
            outputs.append(
                cls(
                    id=_int(g["outputid"]),
                    name=_first(g.get("outputname")) or "",
                    plugin=_first(g.get("plugin")),
                    enabled=_first(g.get("outputenabled")) == "1",
                    attributes=dict(a.split("=", 1) for a in attrs if "=" in a),
                )
            )
        return outputs


@dataclass(frozen=True, slots=True)
class Status:
    """Player status as reported by the status command."""

    state: str
    volume: int | None = None
    repeat: bool = False
    random: bool = False
    single: str = "0"
    consume: str = "0"
    playlist: int | None = None
    playlistlength: int = 0
    song: int | None = None
    songid: int | None = None
    elapsed: float | None = None
    duration: float | None = None
    bitrate: int | None = None
    error: str | None = None
    extra: dict[str, str | list[str]] = field(default_factory=dict)

    @classmethod
    def from_pairs(cls, pairs: Pairs) -> Status:
        data: dict[str, str] = {}
        for key, value in pairs:
            data.setdefault(key, value)
        volume = _int(data.get("volume"))
        known = {
            "state", "volume", "repeat", "random", "single", "consume",
            "playlist", "playlistlength", "song", "songid", "elapsed",
            "duration", "bitrate", "error",
        }
        return cls(
            state=data.get("state", "stop"),
            # -1 means no mixer
            volume=None if volume is None or volume < 0 else volume,
            repeat=data.get("repeat") == "1",
            random=data.get("random") == "1",
            single=data.get("single", "0"),
            consume=data.get("consume", "0"),
            playlist=_int(data.get("playlist")),
            playlistlength=_int(data.get("playlistlength")) or 0,
            song=_int(data.get("song")),
            songid=_int(data.get("songid")),
            elapsed=_float(data.get("elapsed")),
            duration=_float(data.get("duration")),
            bitrate=_int(data.get("bitrate")),
            error=data.get("error"),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass(frozen=True, slots=True)
class Stats:
    """Database and uptime statistics from the stats command."""

    artists: int = 0
    albums: int = 0
    songs: int = 0
    uptime: int = 0
    playtime: int = 0
    db_playtime: int = 0
    db_update: datetime | None = None

    @classmethod
    def from_pairs(cls, pairs: Pairs) -> Stats:
        data = dict(pairs)
        db_update = _int(data.get("db_update"))
        return cls(
            artists=_int(data.get("artists")) or 0,
            albums=_int(data.get("albums")) or 0,
            songs=_int(data.get("songs")) or 0,
            uptime=_int(data.get("uptime")) or 0,
            playtime=_int(data.get("playtime")) or 0,
            db_playtime=_int(data.get("db_playtime")) or 0,
            db_update=(
                None
                if db_update is None
                else datetime.fromtimestamp(db_update, tz=timezone.utc)
            ),
        )
