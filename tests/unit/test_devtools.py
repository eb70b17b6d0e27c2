"""Unit tests for event logging and rich rendering."""

import logging

import pytest
from rich.console import Console

from storeflux import ActionType
from storeflux.devtools import log_events, print_events, render_events


@pytest.mark.unit
@pytest.mark.devtools
def test_log_events_writes_each_event(runtime, counter, caplog):
    logger = logging.getLogger("test.storeflux.events")
    subscription = log_events(runtime, logger=logger, level=logging.INFO)

    with caplog.at_level(logging.INFO, logger="test.storeflux.events"):
        with runtime.action(counter, "increment"):
            runtime.dispatch(ActionType.SET, counter, "count", 1)
        subscription.unsubscribe()
        runtime.dispatch(ActionType.SET, counter, "count", 2)

    messages = [record.getMessage() for record in caplog.records]
    assert len(messages) == 2
    assert "[0] dispatch" in messages[0]
    assert "count = 1" in messages[1]


@pytest.mark.unit
@pytest.mark.devtools
def test_render_events_has_one_row_per_event(runtime, counter):
    runtime.dispatch(ActionType.SET, counter, "count", 1)
    runtime.dispatch(ActionType.NEXT, counter, "tick", "[not markup]")

    table = render_events(runtime.log)

    assert table.row_count == 2
    assert [column.header for column in table.columns][:3] == ["Id", "Timestamp", "Type"]


@pytest.mark.unit
@pytest.mark.devtools
def test_print_events_filters_by_store(runtime, counter_class):
    first, second = counter_class(), counter_class()
    runtime.register(first)
    runtime.register(second)
    runtime.dispatch(ActionType.SET, first, "count", 1)
    runtime.dispatch(ActionType.SET, second, "label", "only-second")

    console = Console(record=True, width=140)
    print_events(runtime, console=console, store=first)
    output = console.export_text()

    assert "count" in output
    assert "only-second" not in output
