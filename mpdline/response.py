"""Response reading: lazy key/value pairs up to an OK or ACK terminator."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from .channel import USE_DEFAULT, LineChannel
from .errors import MPDConnectionError, MPDProtocolError, MPDStateError, ServerError
from .protocol import LIST_OK, OK, is_ack, parse_ack, parse_pair
from .records import group_pairs

logger = logging.getLogger(__name__)

Pair = tuple[str, str]


@dataclass(frozen=True, slots=True)
class ResponseRecord:
    """The complete reply to one command.

    Attributes:
        pairs: Ordered (key, value) pairs. Keys may repeat.
        error: None on success, else the ServerError from the ACK line.
    """

    pairs: tuple[Pair, ...] = ()
    error: ServerError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the first value for key."""
        for k, v in self.pairs:
            if k == key:
                return v
        return default

    def get_all(self, key: str) -> list[str]:
        return [v for k, v in self.pairs if k == key]

    def as_dict(self) -> dict[str, str | list[str]]:
        """Collapse pairs into a dict; repeated keys become lists in order."""
        result: dict[str, str | list[str]] = {}
        for key, value in self.pairs:
            if key not in result:
                result[key] = value
            elif isinstance(result[key], list):
                result[key].append(value)
            else:
                result[key] = [result[key], value]
        return result

    def group(self, start_keys: Iterable[str]) -> list[dict[str, str | list[str]]]:
        """Split pairs into one dict per entity (see records.group_pairs)."""
        return group_pairs(self.pairs, start_keys)

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self) -> Iterator[Pair]:
        return iter(self.pairs)


class ResponseReader:
    """Forward-only iterator over the pairs of one reply.

    The reader is bound to the connection that sent the command. Reaching
    the terminal line calls on_done(); a transport or grammar failure calls
    on_failure(exc) and re-raises. A reader abandoned before its terminal
    line keeps the connection busy until drain() is called.

    In list mode (command_list_ok_begin) a ``list_OK`` line ends the
    current member's pairs; see next_member().
    """

    def __init__(
        self,
        channel: LineChannel,
        *,
        on_done: Callable[[], None],
        on_failure: Callable[[Exception], None],
        list_mode: bool = False,
        timeout=USE_DEFAULT,
    ) -> None:
        self._channel = channel
        self._on_done = on_done
        self._on_failure = on_failure
        self._list_mode = list_mode
        self._timeout = timeout
        self._finished = False
        self._at_boundary = False
        self.outcome: ServerError | None = None

    @property
    def finished(self) -> bool:
        """True once the OK or ACK terminator has been consumed."""
        return self._finished

    def __iter__(self) -> ResponseReader:
        return self

    def __next__(self) -> Pair:
        if self._finished or self._at_boundary:
            raise StopIteration
        line = self._read()

        if line == OK:
            self._finish(None)
            raise StopIteration

        if is_ack(line):
            self._finish(self._guard(parse_ack, line))
            raise StopIteration

        if line == LIST_OK and self._list_mode:
            self._at_boundary = True
            raise StopIteration

        return self._guard(parse_pair, line)

    def next_member(self) -> bool:
        """Move past a list_OK boundary.

        Returns:
            True if another member's pairs follow, False once the reply
            has finished.
        """
        if not self._list_mode:
            raise MPDStateError("next_member() is only valid for command lists")
        if not self._at_boundary:
            raise MPDStateError("Current member has not been consumed")
        self._at_boundary = False
        return not self._finished

    @property
    def at_boundary(self) -> bool:
        return self._at_boundary

    def drain(self) -> None:
        """Consume and discard the rest of the reply."""
        while not self._finished:
            for _ in self:
                pass
            if self._at_boundary:
                self._at_boundary = False

    def collect(self) -> ResponseRecord:
        """Read the remaining pairs into a ResponseRecord.

        An ACK terminator is stored on the record, not raised.
        """
        pairs = tuple(self)
        return ResponseRecord(pairs=pairs, error=self.outcome)

    def read_record(self) -> ResponseRecord:
        """Like collect(), but raise the ServerError on ACK."""
        record = self.collect()
        record.raise_for_error()
        return record

    def raise_for_error(self) -> None:
        if not self._finished:
            raise MPDStateError("Reply has not been fully read")
        if self.outcome is not None:
            raise self.outcome

    # --- Internal ---

    def _read(self) -> str:
        try:
            return self._channel.read_line(self._timeout)
        except MPDConnectionError as exc:
            self._fail(exc)
            raise

    def _guard(self, parse, line: str):
        try:
            return parse(line)
        except MPDProtocolError as exc:
            self._fail(exc)
            raise

    def _finish(self, outcome: ServerError | None) -> None:
        self._finished = True
        self._at_boundary = False
        self.outcome = outcome
        if outcome is not None:
            logger.debug("Command failed: %r", outcome)
        self._on_done()

    def _fail(self, exc: Exception) -> None:
        self._finished = True
        self._on_failure(exc)
