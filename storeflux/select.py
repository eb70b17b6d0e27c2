"""
storeflux Selectors - Per-Property and Whole-Store Change Streams
================================================================

Selectors turn the runtime's coarse flush channel into change streams bound
to one store.

**select(store)**: returns a Selector. ``selector.count`` (or
``selector["count"]``) is a cold Stream that emits the current value of
``count`` on subscription, then re-reads it after every flush of this exact
store and emits it only when it is not ``same_value`` as the last emitted
value. Flushes of any other store, even an equal-looking one, are ignored.
Reading a key the store does not have yields None. Keys that collide with the
Selector's own attributes (``store``, ``stream``) are reachable as items.

**select_store(store)**: a cold Stream of the store itself. It emits the
store on subscription and again after each flush that changed at least one
enumerable entry, as reported by a structural differ primed when the
subscription started.

```python
counts, subscription = select(counter, runtime).count.collect()
with runtime.action(counter, "increment"):
    counter.count += 1
assert counts == [0, 1]
```
"""

from typing import Any, Dict

from .differs import same_value
from .stream import Stream
from .tracking import peek, untrack


def _flushes_of(store: Any, runtime) -> Stream:
    return Stream.from_broadcast(runtime.flushed).filter(
        lambda context: context is store
    )


def property_stream(store: Any, key: Any, runtime) -> Stream:
    store = untrack(store)
    return (
        _flushes_of(store, runtime)
        .map(lambda _: peek(store, key))
        .start_with(lambda: peek(store, key))
        .distinct_until_changed(same_value)
    )


class Selector:
    """Read-only map from store keys to cached change streams."""

    __slots__ = ("_store", "_runtime", "_streams")

    def __init__(self, store: Any, runtime):
        self._store = untrack(store)
        self._runtime = runtime
        self._streams: Dict[Any, Stream] = {}

    @property
    def store(self) -> Any:
        return self._store

    def stream(self, key: Any) -> Stream:
        stream = self._streams.get(key)
        if stream is None:
            stream = property_stream(self._store, key, self._runtime)
            self._streams[key] = stream
        return stream

    def __getattr__(self, name: str) -> Stream:
        if name.startswith("__"):
            raise AttributeError(name)
        return self.stream(name)

    def __getitem__(self, key: Any) -> Stream:
        return self.stream(key)

    def __repr__(self) -> str:
        return f"Selector({type(self._store).__name__}, keys={list(self._streams)})"


def select(store: Any, runtime) -> Selector:
    return Selector(store, runtime)


def select_store(store: Any, runtime) -> Stream:
    """Stream of ``store`` re-emitted after each flush that changed it.

    The differ factory is looked up here, so an unsupported shape raises
    ShapeError at the call. The differ itself is created and primed when each
    subscription starts rather than at this call: changes made between
    ``select_store`` and ``subscribe`` are part of the seed emission, not
    reported again on the next flush.
    """
    store = untrack(store)
    factory = runtime.differs.find(store)

    def build() -> Stream:
        differ = factory.create()
        differ.diff(store)
        return (
            _flushes_of(store, runtime)
            .filter(lambda context: differ.diff(context) is not None)
            .start_with(lambda: store)
        )

    return Stream.defer(build)
