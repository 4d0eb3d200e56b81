"""Argument quoting for MPD command lines.

MPD splits a command line into whitespace-separated words. A word that
contains whitespace, a double quote or a backslash must be sent as a
double-quoted string in which ``"`` and ``\\`` are escaped with a
backslash. Everything else goes over the wire bare.
"""

from __future__ import annotations

from .errors import MPDProtocolError

_NEEDS_QUOTING = frozenset(' \t\n\r\f\v"\\')


def quote(token: str) -> str:
    """Encode one argument for a command line."""
    if token and not any(ch in _NEEDS_QUOTING or ch.isspace() for ch in token):
        return token
    escaped = token.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def unquote(text: str) -> str:
    """Reverse quote().

    Bare tokens are returned unchanged.

    Raises:
        MPDProtocolError: On an unterminated quote, a dangling backslash or
            trailing characters after the closing quote.
    """
    if not text.startswith('"'):
        return text
    value, end = _read_quoted(text, 0)
    if end != len(text):
        raise MPDProtocolError(f"Trailing characters after quoted string: {text!r}")
    return value


def split_args(line: str) -> list[str]:
    """Tokenize a command line into its words, unquoting quoted strings.

    Example:
        >>> split_args('add "My Music/a b.flac"')
        ['add', 'My Music/a b.flac']
    """
    args: list[str] = []
    pos = 0
    length = len(line)
    while pos < length:
        if line[pos].isspace():
            pos += 1
            continue
        if line[pos] == '"':
            value, pos = _read_quoted(line, pos)
            if pos < length and not line[pos].isspace():
                raise MPDProtocolError(f"Missing space after quoted string: {line!r}")
            args.append(value)
            continue
        start = pos
        while pos < length and not line[pos].isspace():
            pos += 1
        args.append(line[start:pos])
    return args


def render_arg(value: object) -> str:
    """Render a Python value as one encoded command argument.

    bool -> 1/0, int/float -> decimal text, (start, end) -> start:end,
    str/bytes -> quoted string.
    """
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        text = repr(value)
        return text[:-2] if text.endswith(".0") else text
    if isinstance(value, tuple):
        if len(value) != 2:
            raise TypeError(f"Range argument must have two items, got {value!r}")
        start, end = value
        return f"{int(start)}:" if end is None else f"{int(start)}:{int(end)}"
    if isinstance(value, bytes):
        return quote(value.decode("utf-8"))
    if isinstance(value, str):
        return quote(value)
    raise TypeError(f"Unsupported argument type: {type(value).__name__}")


def _read_quoted(text: str, pos: int) -> tuple[str, int]:
    """Read a quoted string starting at text[pos] == '"'.

    Returns the unescaped value and the index just past the closing quote.
    """
    chars: list[str] = []
    pos += 1
    length = len(text)
    while pos < length:
        ch = text[pos]
        if ch == "\\":
            if pos + 1 >= length:
                raise MPDProtocolError(f"Dangling backslash in {text!r}")
            chars.append(text[pos + 1])
            pos += 2
            continue
        if ch == '"':
            return "".join(chars), pos + 1
        chars.append(ch)
        pos += 1
    raise MPDProtocolError(f"Unterminated quoted string: {text!r}")
