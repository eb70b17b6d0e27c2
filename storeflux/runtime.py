"""
storeflux Runtime - Explicit Runtime Context
============================================

A Runtime owns every piece of shared state the library needs: the event id
sequence, the flush channel, the events channel, the event log and the
registry mapping each store to its EventScheduler. Nothing lives at module
level, so two runtimes never see each other's events or flushes.

```python
class Counter:
    def __init__(self):
        self.count = 0

    def increment(self):
        self.count += 1

with Runtime() as runtime:
    counter = Counter()
    runtime.register(counter)
    runtime.install_action(Counter, "increment")

    values, subscription = runtime.select(counter).count.collect()
    counter.increment()
    assert values == [0, 1]
```

Lifecycle: a Runtime is created at bootstrap and closed at shutdown.
``close()`` drains pending flushes, completes both channels and forgets all
registered stores; a closed runtime refuses to dispatch.
"""

import logging
from collections.abc import MutableMapping
from contextlib import contextmanager
from typing import Any, Callable, Dict, Optional

from .config import RuntimeConfig
from .differs import KeyValueDiffers
from .dispatch import Dispatcher, IdSequence
from .errors import MissingSchedulerError, RuntimeClosedError
from .events import ActionType, EventLog
from .scheduler import EventScheduler, FlushScheduler
from .select import Selector, select, select_store
from .stream import Broadcast, Stream
from .tracking import untrack, wrap

logger = logging.getLogger(__name__)


class Runtime:
    def __init__(
        self,
        config: Optional[RuntimeConfig] = None,
        differs: Optional[KeyValueDiffers] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.config = config if config is not None else RuntimeConfig()
        self.differs = differs if differs is not None else KeyValueDiffers.default()
        raise_errors = self.config.raise_subscriber_errors

        self.ids = IdSequence()
        self.flushed = Broadcast("flushed", raise_errors=raise_errors)
        self.events = Broadcast("events", raise_errors=raise_errors)
        self.log = EventLog(self.config.event_log_capacity)
        self.flush_scheduler = FlushScheduler(self.flushed, self.config.flush_mode)
        self.dispatcher = Dispatcher(self.ids, self.scheduler_for, clock)

        self._schedulers: Dict[int, EventScheduler] = {}
        self._closed = False

    # ------------------------------------------------------------------
    # Store registry
    # ------------------------------------------------------------------

    def register(self, store: Any) -> EventScheduler:
        """Give ``store`` an event scheduler; registering twice is a no-op."""
        self._check_open()
        store = untrack(store)
        scheduler = self._schedulers.get(id(store))
        if scheduler is None:
            scheduler = EventScheduler(
                store, self.log, self.events, self.flush_scheduler
            )
            self._schedulers[id(store)] = scheduler
            logger.debug(f"registered {type(store).__name__} at 0x{id(store):x}")
        return scheduler

    def unregister(self, store: Any) -> None:
        self._schedulers.pop(id(untrack(store)), None)

    def is_registered(self, store: Any) -> bool:
        return id(untrack(store)) in self._schedulers

    def scheduler_for(self, context: Any) -> EventScheduler:
        self._check_open()
        context = untrack(context)
        scheduler = self._schedulers.get(id(context))
        if scheduler is not None:
            return scheduler
        if self.config.auto_register:
            return self.register(context)
        raise MissingSchedulerError(context)

    # ------------------------------------------------------------------
    # Dispatch and actions
    # ------------------------------------------------------------------

    def dispatch(self, type: Any, context: Any, name: str, value: Any = None) -> None:
        """Record one event against ``context``."""
        self.dispatcher.dispatch(type, context, name, value)

    @contextmanager
    def action(self, store: Any, name: str, value: Any = None):
        """Run the block as one action on ``store``.

        Dispatches a DISPATCH event carrying ``value`` on entry. Every event
        dispatched for the store inside the block is flushed together, once,
        when the outermost action on the store exits, whether or not the
        block raised.
        """
        store = untrack(store)
        scheduler = self.scheduler_for(store)
        scheduler.begin()
        try:
            self.dispatch(ActionType.DISPATCH, store, name, value)
            yield store
        finally:
            scheduler.end()

    def assign(self, store: Any, name: str, value: Any) -> None:
        """Set ``store.name`` (or ``store[name]``) and record a SET event."""
        target = untrack(store)
        if isinstance(target, MutableMapping):
            target[name] = value
        else:
            setattr(target, name, value)
        self.dispatch(ActionType.SET, target, name, value)

    def install_action(self, target: Any, name: str) -> None:
        """Make every call of ``target.name`` run as an action.

        ``target`` may be a class or a single instance. The DISPATCH event
        value is the positional arguments tuple, or ``(args, kwargs)`` when
        keyword arguments are passed.
        """
        runtime = self

        def run_action(instance, original, *args, **kwargs):
            value = (args, kwargs) if kwargs else args
            with runtime.action(instance, name, value):
                return original(*args, **kwargs)

        wrap(target, name, run_action)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, store: Any) -> Selector:
        return select(store, self)

    def select_store(self, store: Any) -> Stream:
        return select_store(store, self)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeClosedError("Runtime has been closed")

    def close(self) -> None:
        if self._closed:
            return
        try:
            self.flush_scheduler.drain()
        finally:
            self._closed = True
            self._schedulers.clear()
            self.events.complete()
            self.flushed.complete()
            logger.debug("runtime closed")

    def __enter__(self) -> "Runtime":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return (
            f"Runtime({state}, stores={len(self._schedulers)}, "
            f"next_id={self.ids.peek})"
        )
