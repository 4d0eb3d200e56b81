"""Command values and command-list envelopes."""

from __future__ import annotations

from dataclasses import dataclass

from .protocol import COMMAND_LIST_END, COMMAND_LIST_OK_BEGIN
from .quoting import render_arg

_VERB_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789_")


@dataclass(frozen=True, slots=True)
class Command:
    """One protocol command: a verb and its arguments.

    Attributes:
        verb: Command name, e.g. "status" or "playlistadd".
        args: Arguments as given; rendered with render_arg() on the wire.
    """

    verb: str
    args: tuple = ()

    def __post_init__(self) -> None:
        if not self.verb or not set(self.verb) <= _VERB_CHARS:
            raise ValueError(f"Invalid command verb: {self.verb!r}")
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))
        for arg in self.args:
            # A line break inside an argument would split the command in two
            # on the wire and shift every later reply by one.
            if any(ch in render_arg(arg) for ch in "\r\n"):
                raise ValueError(f"Line break in argument to {self.verb}: {arg!r}")

    @classmethod
    def of(cls, verb: str, *args: object) -> Command:
        return cls(verb, args)

    def to_line(self) -> str:
        """Serialize to a single command line (without newline)."""
        if not self.args:
            return self.verb
        rendered = " ".join(render_arg(arg) for arg in self.args)
        return f"{self.verb} {rendered}"

    def __str__(self) -> str:
        return self.to_line()


def command_list_lines(commands: list[Command]) -> list[str]:
    """Wrap commands in a command_list_ok_begin / command_list_end envelope."""
    return [COMMAND_LIST_OK_BEGIN, *(cmd.to_line() for cmd in commands), COMMAND_LIST_END]
