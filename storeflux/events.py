"""
Event model and in-memory event log.

An Event is the immutable record of one dispatched mutation. Events are only
created by the Dispatcher; the EventLog keeps the most recent ones in id
order for inspection and has no persistence.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Deque, Iterator, List, Optional


class ActionType(Enum):
    """Kind of a dispatched event."""

    DISPATCH = "dispatch"
    NEXT = "next"
    ERROR = "error"
    COMPLETE = "complete"
    SET = "set"


@dataclass(frozen=True)
class Event:
    """One dispatched mutation.

    Attributes:
        id: runtime-wide monotonic identifier, starting at 0
        timestamp: wall-clock milliseconds at dispatch time
        type: the ActionType of the event
        context: the store the event belongs to (never a tracked view)
        name: action or property name
        value: payload, unconstrained
    """

    id: int
    timestamp: int
    type: ActionType
    context: Any
    name: str
    value: Any = None

    def __repr__(self) -> str:
        return (
            f"Event(id={self.id}, type={self.type.value}, "
            f"context={type(self.context).__name__}, name={self.name!r}, "
            f"value={self.value!r})"
        )


class EventLog:
    """Bounded, ordered log of flushed events."""

    def __init__(self, capacity: Optional[int] = None):
        self._capacity = capacity
        self._events: Deque[Event] = deque(maxlen=capacity)

    @property
    def capacity(self) -> Optional[int]:
        return self._capacity

    def append(self, event: Event) -> None:
        self._events.append(event)

    def extend(self, events) -> None:
        for event in events:
            self.append(event)

    def for_context(self, context: Any) -> List[Event]:
        """Events whose context is this exact object."""
        return [event for event in self._events if event.context is context]

    def last(self) -> Optional[Event]:
        return self._events[-1] if self._events else None

    def clear(self) -> None:
        self._events.clear()

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return f"EventLog(size={len(self._events)}, capacity={self._capacity})"
