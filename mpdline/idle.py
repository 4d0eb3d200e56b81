"""The idle/noidle long-poll notification protocol.

``idle`` makes the server hold its reply until something changes, then
send ``changed: <subsystem>`` lines and ``OK``. While it waits, the only
command the server accepts is ``noidle``, which makes it reply at once
with whatever changes are pending (possibly none).

The waiting thread blocks in IdleController.idle(); any other thread may
call IdleController.cancel() to release it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .channel import USE_DEFAULT
from .command import Command
from .errors import MPDConnectionError, MPDError, MPDProtocolError, MPDTimeoutError
from .protocol import (
    CHANGED_KEY,
    IDLE,
    NOIDLE,
    OK,
    Subsystem,
    is_ack,
    parse_ack,
    parse_pair,
    subsystem_for,
)

if TYPE_CHECKING:
    from .connection import Connection

logger = logging.getLogger(__name__)


class IdleState(Enum):
    READY = "ready"
    ENTERING = "entering"
    BLOCKED = "blocked"
    CANCELLING = "cancelling"


@dataclass(frozen=True, slots=True)
class IdleEvent:
    """Subsystems reported changed by one idle cycle.

    Empty only when the wait was cancelled with nothing pending.
    """

    subsystems: frozenset[str] = frozenset()
    cancelled: bool = False

    @property
    def known(self) -> frozenset[Subsystem | str]:
        """Subsystem names mapped to Subsystem members where possible."""
        return frozenset(subsystem_for(name) for name in self.subsystems)

    def __contains__(self, name: object) -> bool:
        return getattr(name, "value", name) in self.subsystems

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.subsystems))

    def __len__(self) -> int:
        return len(self.subsystems)

    def __bool__(self) -> bool:
        return bool(self.subsystems)


class IdleController:
    """Runs idle waits on a Connection and cancels them from other threads.

    The controller's lock guards its own state and is always taken before
    the connection's lock, never after.
    """

    def __init__(self, connection: Connection) -> None:
        self._conn = connection
        self._lock = threading.Lock()
        self._state = IdleState.READY
        self._cancel_requested = threading.Event()

    @property
    def state(self) -> IdleState:
        return self._state

    @property
    def is_blocked(self) -> bool:
        return self._state in (IdleState.BLOCKED, IdleState.CANCELLING)

    def idle(self, *subsystems: str, timeout: float | None = None) -> IdleEvent:
        """Wait until the server reports a change.

        Args:
            subsystems: Only wake for these subsystems; all when empty.
            timeout: Seconds to wait for the first reply line. On expiry
                noidle is sent and the rest of the reply is read under the
                connection's command timeout. None waits indefinitely.

        Returns:
            The IdleEvent for this cycle; empty when cancelled with no
            pending change.

        Raises:
            MPDStateError: If the connection is not ready.
            ServerError: If the server rejects the idle command (for
                example an unknown subsystem name).
        """
        names = tuple(getattr(name, "value", name) for name in subsystems)
        conn = self._conn
        with self._lock:
            self._state = IdleState.ENTERING
            self._cancel_requested.clear()
            try:
                conn._enter_idle(Command(IDLE, names).to_line())
            except MPDError:
                self._state = IdleState.READY
                raise
            self._state = IdleState.BLOCKED
        logger.debug("Entered idle (%s)", " ".join(names) or "all")

        changed: set[str] = set()
        try:
            line = self._first_line(timeout)
            while line != OK:
                if is_ack(line):
                    error = parse_ack(line)
                    self._finish()
                    raise error
                key, value = parse_pair(line)
                if key != CHANGED_KEY:
                    raise MPDProtocolError(f"Unexpected line in idle reply: {line!r}")
                changed.add(value)
                line = conn._read_line()
        except (MPDConnectionError, MPDProtocolError) as exc:
            with self._lock:
                self._state = IdleState.READY
            conn._poison(exc)
            raise

        cancelled = self._cancel_requested.is_set()
        self._finish()
        logger.debug("Idle returned %s", sorted(changed) or "nothing")
        return IdleEvent(frozenset(changed), cancelled=cancelled)

    def cancel(self) -> bool:
        """Send noidle if an idle wait is in progress.

        Safe to call from any thread, and more than once; only the first
        call while blocked writes to the socket. A cancellation that races
        with an incoming changed block is still written, and the waiting
        thread returns only after that block's OK.

        Returns:
            True if noidle was written.

        Raises:
            MPDStateError: If the connection is closed.
        """
        with self._lock:
            if self._conn.is_closed:
                self._conn._require_ready()
            if self._state is not IdleState.BLOCKED or self._cancel_requested.is_set():
                return False
            self._cancel_requested.set()
            self._state = IdleState.CANCELLING
            self._conn._write_noidle()
        logger.debug("Sent noidle")
        return True

    def _first_line(self, timeout: float | None) -> str:
        try:
            return self._conn._read_line(timeout)
        except MPDTimeoutError:
            if timeout is None:
                raise
        # Wait expired with nothing received: cancel and read the reply
        # under the normal command timeout.
        self.cancel()
        return self._conn._read_line(USE_DEFAULT)

    def _finish(self) -> None:
        with self._lock:
            self._state = IdleState.READY
            self._conn._reply_done()
