"""
Diagnostics for a running Runtime.

``log_events`` streams every flushed event to a standard library logger.
``render_events`` and ``print_events`` show the event log as a rich table:

    print_events(runtime)

    ┏━━━━┳━━━━━━━━━━━━━━━┳━━━━━━━━━━┳━━━━━━━━━┳━━━━━━━━━━━┳━━━━━━━┓
    ┃ Id ┃ Timestamp     ┃ Type     ┃ Context ┃ Name      ┃ Value ┃
    ...
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .events import ActionType, Event
from .stream import Subscription

_TYPE_STYLES = {
    ActionType.DISPATCH: "cyan",
    ActionType.NEXT: "green",
    ActionType.ERROR: "red",
    ActionType.COMPLETE: "blue",
    ActionType.SET: "yellow",
}


def log_events(
    runtime, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG
) -> Subscription:
    """Log every event the runtime flushes until unsubscribed."""
    target = logger or logging.getLogger("storeflux.events")

    def on_event(event: Event) -> None:
        target.log(
            level,
            f"[{event.id}] {event.type.value} "
            f"{type(event.context).__name__}.{event.name} = {event.value!r}",
        )

    return runtime.events.subscribe(on_event)


def _format_timestamp(timestamp: int) -> str:
    moment = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    return moment.strftime("%H:%M:%S.") + f"{timestamp % 1000:03d}"


def render_events(events: Iterable[Event], title: str = "Events") -> Table:
    table = Table(title=title)
    table.add_column("Id", style="magenta", justify="right")
    table.add_column("Timestamp", style="dim")
    table.add_column("Type")
    table.add_column("Context", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Value")

    for event in events:
        style = _TYPE_STYLES.get(event.type, "white")
        table.add_row(
            str(event.id),
            _format_timestamp(event.timestamp),
            f"[{style}]{event.type.value}[/{style}]",
            f"{type(event.context).__name__}@{id(event.context):x}",
            Text(str(event.name)),
            Text(repr(event.value)),
        )
    return table


def print_events(runtime, console: Optional[Console] = None, store=None) -> None:
    """Print the runtime's event log, optionally for one store only."""
    events = runtime.log if store is None else runtime.log.for_context(store)
    (console or Console()).print(render_events(events, title="storeflux event log"))
