"""
storeflux Streams - Broadcast Nodes and Cold Derived Streams
============================================================

Two push-based building blocks carry every notification in storeflux:

**Broadcast**: a hot multicast node. ``emit(value)`` delivers to every current
subscriber, in subscription order. There is no consumption: all subscribers
see every value. The runtime's flush channel and event channel are
Broadcasts.

**Stream**: a cold, lazy stream described by a subscribe function. Nothing
happens until ``subscribe`` is called, and every subscription runs its own
copy of the pipeline, so operator state (the last emitted value of
``distinct_until_changed`` for example) is per subscription and is released
when the subscription is cancelled.

```python
flushed = Broadcast()
counts = (
    Stream.from_broadcast(flushed)
    .filter(lambda store: store is counter)
    .map(lambda store: store.count)
    .start_with(lambda: counter.count)
    .distinct_until_changed()
)
subscription = counts.subscribe(print)   # prints the current count
subscription.unsubscribe()
```

Operators return new Streams and never mutate the source. ``stream >> fn`` is
shorthand for ``stream.map(fn)``.
"""

import logging
from typing import Any, Callable, List, Optional, Tuple

from .differs import same_value

logger = logging.getLogger(__name__)

Teardown = Callable[[], None]


class Subscription:
    """Cancellation handle returned by every ``subscribe`` call.

    ``unsubscribe()`` runs the registered teardowns once; calling it again is
    a no-op.
    """

    __slots__ = ("_teardowns", "_closed")

    def __init__(self, teardown: Optional[Teardown] = None):
        self._teardowns: List[Teardown] = []
        self._closed = False
        if teardown is not None:
            self._teardowns.append(teardown)

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, teardown) -> None:
        """Attach a teardown; runs at once if already closed."""
        if teardown is None:
            return
        if isinstance(teardown, Subscription):
            teardown = teardown.unsubscribe
        if self._closed:
            teardown()
        else:
            self._teardowns.append(teardown)

    def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True
        teardowns, self._teardowns = self._teardowns, []
        for teardown in reversed(teardowns):
            teardown()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unsubscribe()

    def __repr__(self) -> str:
        return f"Subscription(closed={self._closed})"


class Observer:
    """Pair of callbacks a source pushes into."""

    __slots__ = ("next", "complete")

    def __init__(
        self,
        on_next: Callable[[Any], None],
        on_complete: Optional[Callable[[], None]] = None,
    ):
        self.next = on_next
        self.complete = on_complete if on_complete is not None else _noop


def _noop() -> None:
    pass


class Broadcast:
    """Hot multicast node.

    Subscribers added during an emission do not receive that emission;
    subscribers removed during an emission are skipped if not yet reached.
    A failing subscriber does not prevent delivery to the others: the error
    is logged and, when ``raise_errors`` is set, the first one is re-raised
    once every subscriber has been notified.
    """

    def __init__(self, name: str = "broadcast", raise_errors: bool = True):
        self.name = name
        self.raise_errors = raise_errors
        self._observers: List[Tuple[Subscription, Observer]] = []
        self._completed = False

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def subscribe(
        self,
        on_next: Callable[[Any], None],
        on_complete: Optional[Callable[[], None]] = None,
    ) -> Subscription:
        observer = Observer(on_next, on_complete)
        if self._completed:
            subscription = Subscription()
            subscription.unsubscribe()
            observer.complete()
            return subscription

        entry = None

        def remove():
            try:
                self._observers.remove(entry)
            except ValueError:
                pass

        subscription = Subscription(remove)
        entry = (subscription, observer)
        self._observers.append(entry)
        return subscription

    def emit(self, value: Any) -> None:
        if self._completed:
            return
        first_error = None
        for subscription, observer in list(self._observers):
            if subscription.closed:
                continue
            try:
                observer.next(value)
            except Exception as e:
                logger.error(f"Subscriber of {self.name} raised: {e!r}")
                if first_error is None:
                    first_error = e
        if first_error is not None and self.raise_errors:
            raise first_error

    def complete(self) -> None:
        if self._completed:
            return
        self._completed = True
        observers, self._observers = self._observers, []
        for subscription, observer in observers:
            if not subscription.closed:
                observer.complete()
                subscription.unsubscribe()

    def __repr__(self) -> str:
        return (
            f"Broadcast({self.name!r}, observers={len(self._observers)}, "
            f"completed={self._completed})"
        )


class Stream:
    """Cold stream defined by a function of an Observer.

    The function is called once per subscription and may return a teardown
    callable or a Subscription.
    """

    def __init__(self, source: Callable[[Observer], Any]):
        self._source = source

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_broadcast(cls, broadcast: Broadcast) -> "Stream":
        def source(observer: Observer):
            return broadcast.subscribe(observer.next, observer.complete)

        return cls(source)

    @classmethod
    def defer(cls, factory: Callable[[], "Stream"]) -> "Stream":
        """Build a fresh stream from ``factory`` for every subscription."""

        def source(observer: Observer):
            return factory()._run(observer)

        return cls(source)

    @classmethod
    def of(cls, *values: Any) -> "Stream":
        def source(observer: Observer):
            for value in values:
                observer.next(value)
            observer.complete()

        return cls(source)

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def _run(self, observer: Observer) -> Subscription:
        subscription = Subscription()

        def on_next(value):
            if not subscription.closed:
                observer.next(value)

        def on_complete():
            if not subscription.closed:
                subscription.unsubscribe()
                observer.complete()

        subscription.add(self._source(Observer(on_next, on_complete)))
        return subscription

    def subscribe(
        self,
        on_next: Callable[[Any], None],
        on_complete: Optional[Callable[[], None]] = None,
    ) -> Subscription:
        return self._run(Observer(on_next, on_complete))

    def collect(self) -> Tuple[List[Any], Subscription]:
        """Subscribe and append every value to a list."""
        values: List[Any] = []
        return values, self.subscribe(values.append)

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def _lift(self, operate: Callable[[Observer], Observer]) -> "Stream":
        upstream = self

        def source(observer: Observer):
            return upstream._run(operate(observer))

        return Stream(source)

    def map(self, fn: Callable[[Any], Any]) -> "Stream":
        return self._lift(
            lambda observer: Observer(
                lambda value: observer.next(fn(value)), observer.complete
            )
        )

    def filter(self, predicate: Callable[[Any], bool]) -> "Stream":
        def operate(observer: Observer) -> Observer:
            def on_next(value):
                if predicate(value):
                    observer.next(value)

            return Observer(on_next, observer.complete)

        return self._lift(operate)

    def start_with(self, thunk: Callable[[], Any]) -> "Stream":
        """Emit ``thunk()`` on subscription, before any upstream value."""
        upstream = self

        def source(observer: Observer):
            observer.next(thunk())
            return upstream._run(observer)

        return Stream(source)

    def distinct_until_changed(
        self, comparer: Callable[[Any, Any], bool] = same_value
    ) -> "Stream":
        """Drop values ``comparer`` considers equal to the previous one."""

        def operate(observer: Observer) -> Observer:
            state = {"has_last": False, "last": None}

            def on_next(value):
                if state["has_last"] and comparer(state["last"], value):
                    return
                state["has_last"] = True
                state["last"] = value
                observer.next(value)

            return Observer(on_next, observer.complete)

        return self._lift(operate)

    def __rshift__(self, fn: Callable[[Any], Any]) -> "Stream":
        return self.map(fn)

    def __repr__(self) -> str:
        return f"Stream({getattr(self._source, '__qualname__', self._source)!r})"
