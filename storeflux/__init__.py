"""
storeflux - Reactive State Synchronization for Plain Python Objects
===================================================================

storeflux observes a mutable object ("store") as a set of fine-grained change
streams. Every mutation recorded against a store is an ordered, timestamped
event tied to an action, and all events of one action collapse into a single
flush notification. Selectors derive per-property and whole-store streams
from those flushes without re-delivering unchanged values.

```python
from storeflux import Runtime

class Counter:
    def __init__(self):
        self.count = 0

    def increment(self):
        self.count += 1

with Runtime() as runtime:
    counter = Counter()
    runtime.register(counter)
    runtime.install_action(Counter, "increment")

    counts, subscription = runtime.select(counter).count.collect()
    counter.increment()
    counter.increment()
    print(counts)  # [0, 1, 2]
```
"""

from .config import RuntimeConfig
from .differs import (
    ChangeKind,
    KeyValueChangeRecord,
    KeyValueChanges,
    KeyValueDiffer,
    KeyValueDiffers,
    same_value,
)
from .dispatch import Dispatcher, IdSequence
from .errors import (
    MissingSchedulerError,
    RuntimeClosedError,
    ShapeError,
    StorefluxError,
)
from .events import ActionType, Event, EventLog
from .runtime import Runtime
from .scheduler import EventScheduler, FlushScheduler
from .select import Selector, select, select_store
from .stream import Broadcast, Stream, Subscription
from .tracking import (
    ITERATE,
    DependencyCollector,
    DependencySet,
    TrackedView,
    collect_dependencies,
    is_proxy,
    peek,
    track,
    untrack,
    wrap,
)

__version__ = "0.1.0"

__all__ = [
    # Runtime
    "Runtime",
    "RuntimeConfig",
    # Tracking
    "track",
    "untrack",
    "is_proxy",
    "peek",
    "wrap",
    "TrackedView",
    "DependencyCollector",
    "DependencySet",
    "collect_dependencies",
    "ITERATE",
    # Events and dispatch
    "ActionType",
    "Event",
    "EventLog",
    "Dispatcher",
    "IdSequence",
    "EventScheduler",
    "FlushScheduler",
    # Streams and selection
    "Broadcast",
    "Stream",
    "Subscription",
    "Selector",
    "select",
    "select_store",
    # Diffing
    "same_value",
    "ChangeKind",
    "KeyValueChangeRecord",
    "KeyValueChanges",
    "KeyValueDiffer",
    "KeyValueDiffers",
    # Exceptions
    "StorefluxError",
    "MissingSchedulerError",
    "ShapeError",
    "RuntimeClosedError",
]
