"""
Tests for README.md examples to ensure they work as documented.
"""

from storeflux import Runtime


class TestReadmeExamples:
    """Test the code examples from README.md and the package docstring."""

    def test_quick_start_example(self):
        """Counter store with an installed action feeds a selector stream."""

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

            assert counts == [0, 1, 2]
            subscription.unsubscribe()

    def test_runtime_close_completes_channels(self):
        """Closing the runtime completes subscriptions and refuses new work."""
        runtime = Runtime()
        completed = []
        runtime.flushed.subscribe(lambda store: None, lambda: completed.append(True))

        runtime.close()
        runtime.close()

        assert completed == [True]
        assert runtime.closed
