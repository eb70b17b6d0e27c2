"""
Action dispatcher.

The Dispatcher is the only code that creates Events and the only code that
advances the runtime's id sequence. Dispatch is synchronous: the event is in
its store's scheduler before ``dispatch`` returns.
"""

import logging
import time
from typing import Any, Callable, Optional

from .events import ActionType, Event
from .tracking import untrack

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class IdSequence:
    """Monotonic event ids, starting at 0 and never reused."""

    def __init__(self, start: int = 0):
        self._next = start

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value

    @property
    def peek(self) -> int:
        """The id the next event will get."""
        return self._next

    def __repr__(self) -> str:
        return f"IdSequence(next={self._next})"


class Dispatcher:
    """Records events and routes them to the scheduler of their store.

    Args:
        ids: the runtime's id sequence
        resolve: maps a store to its EventScheduler, raising
            MissingSchedulerError when there is none
        clock: wall-clock milliseconds source
    """

    def __init__(
        self,
        ids: IdSequence,
        resolve: Callable[[Any], Any],
        clock: Optional[Callable[[], int]] = None,
    ):
        self._ids = ids
        self._resolve = resolve
        self._clock = clock or wall_clock_ms
        self._last_timestamp = 0

    def _timestamp(self) -> int:
        # Wall clocks can step backwards; event order must not.
        now = max(self._clock(), self._last_timestamp)
        self._last_timestamp = now
        return now

    def dispatch(self, type: Any, context: Any, name: str, value: Any = None) -> None:
        action_type = ActionType(type)
        context = untrack(context)
        scheduler = self._resolve(context)
        event = Event(
            id=self._ids.next(),
            timestamp=self._timestamp(),
            type=action_type,
            context=context,
            name=name,
            value=value,
        )
        logger.debug(f"dispatch {event!r}")
        scheduler.push(event)
