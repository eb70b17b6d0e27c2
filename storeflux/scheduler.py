"""
Event and flush scheduling.

EventScheduler
    One per registered store. Holds the events dispatched during the current
    action and the action nesting depth. When the outermost action ends the
    pending events are written to the event log, then emitted on the events
    channel in id order, and a single flush of the store is requested. A
    dispatch made while no action is open is its own action and flushes at
    once. A failing subscriber never keeps an event out of the log or the
    store's flush from being requested; its error is re-raised afterwards.

FlushScheduler
    Emits stores on the runtime's flush channel. Requests are queued and
    drained breadth-first, so a flush requested by a subscriber of another
    flush is delivered after the current one has reached every subscriber.
    The queue is always drained completely before the first subscriber error
    is re-raised. In "deferred" mode (the default) the drain runs on a later
    turn of the running asyncio loop, or at once when no loop is running.
"""

import asyncio
import logging
from collections import deque
from typing import Any, Deque, List, Tuple

from .errors import StorefluxError
from .events import Event, EventLog
from .stream import Broadcast

logger = logging.getLogger(__name__)


class FlushScheduler:
    def __init__(self, channel: Broadcast, mode: str = "deferred"):
        self._channel = channel
        self._mode = mode
        self._pending: Deque[Any] = deque()
        self._draining = False
        self._scheduled = False

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def request(self, store: Any) -> None:
        self._pending.append(store)
        if self._mode == "deferred":
            if self._scheduled:
                return
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running event loop, flushing immediately")
            else:
                self._scheduled = True
                loop.call_soon(self._drain_scheduled)
                return
        self.drain()

    def _drain_scheduled(self) -> None:
        self._scheduled = False
        self.drain()

    def drain(self) -> None:
        """Emit every pending flush in request order."""
        if self._draining:
            return
        self._draining = True
        first_error = None
        try:
            while self._pending:
                store = self._pending.popleft()
                logger.debug(f"flush {type(store).__name__} at 0x{id(store):x}")
                try:
                    self._channel.emit(store)
                except Exception as e:
                    if first_error is None:
                        first_error = e
        finally:
            self._draining = False
        if first_error is not None:
            raise first_error


class EventScheduler:
    def __init__(
        self,
        store: Any,
        log: EventLog,
        events: Broadcast,
        flusher: FlushScheduler,
    ):
        self.store = store
        self._log = log
        self._events = events
        self._flusher = flusher
        self._pending: List[Event] = []
        self._depth = 0

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def in_action(self) -> bool:
        return self._depth > 0

    @property
    def pending(self) -> Tuple[Event, ...]:
        return tuple(self._pending)

    def push(self, event: Event) -> None:
        self._pending.append(event)
        if self._depth == 0:
            self.flush()

    def begin(self) -> None:
        self._depth += 1

    def end(self) -> None:
        if self._depth == 0:
            raise StorefluxError("end() called without a matching begin()")
        self._depth -= 1
        if self._depth == 0:
            self.flush()

    def flush(self) -> None:
        events, self._pending = self._pending, []
        self._log.extend(events)
        first_error = None
        for event in events:
            try:
                self._events.emit(event)
            except Exception as e:
                if first_error is None:
                    first_error = e
        try:
            self._flusher.request(self.store)
        finally:
            if first_error is not None:
                raise first_error

    def __repr__(self) -> str:
        return (
            f"EventScheduler({type(self.store).__name__}, depth={self._depth}, "
            f"pending={len(self._pending)})"
        )
