"""
Exceptions raised by storeflux.

Every error here is a programmer error surfaced synchronously at the call
that broke a contract. Nothing is retried.
"""


class StorefluxError(Exception):
    """Base class for all storeflux errors."""

    pass


class MissingSchedulerError(StorefluxError, LookupError):
    """Raised when an event is dispatched for a context with no scheduler."""

    def __init__(self, context):
        self.context = context
        super().__init__(
            f"No event scheduler registered for {type(context).__name__} "
            f"at 0x{id(context):x}"
        )


class ShapeError(StorefluxError, TypeError):
    """Raised when a value has the wrong shape for tracking or diffing."""

    pass


class RuntimeClosedError(StorefluxError, RuntimeError):
    """Raised when a closed runtime is asked to dispatch or flush."""

    pass
