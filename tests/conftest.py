"""
Shared pytest fixtures and configuration for storeflux tests.
"""

import pytest

from storeflux import Runtime


class Counter:
    """Small store used across the suite."""

    def __init__(self, count=0):
        self.count = count
        self.label = "counter"

    def increment(self):
        self.count += 1

    def set_both(self, count, label):
        self.count = count
        self.label = label


@pytest.fixture
def runtime():
    """Provide a fresh Runtime, closed after the test."""
    rt = Runtime()
    yield rt
    rt.close()


@pytest.fixture
def counter_class():
    """A fresh Counter subclass so wrapping never leaks between tests."""

    class TestCounter(Counter):
        pass

    return TestCounter


@pytest.fixture
def counter(runtime, counter_class):
    """A Counter registered with the runtime."""
    store = counter_class()
    runtime.register(store)
    return store
