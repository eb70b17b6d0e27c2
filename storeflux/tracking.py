"""
storeflux Tracking - Tracked and Untracked Store Access
======================================================

A store is read in one of two modes:

**Tracked**: ``track(store)`` returns a ``TrackedView``, a thin facade sharing
the store as its backing object. Every read through the view registers a
``(target, key)`` dependency with the active dependency collector, if there
is one. Nested mappings, lists and objects read through a view come back as
views too, so reads deep inside the store are registered against the object
that owns them.

**Untracked**: ``untrack(value)`` returns the backing object itself. Reads on
it register nothing. ``untrack`` is a no-op on plain values.

```python
deps = DependencySet()
view = track(store)
with collect_dependencies(deps):
    view.count          # registered
    untrack(view).name  # not registered
assert (store, "count") in deps
```

The active collector is supplied by whoever evaluates a derivation; the
tracking layer only pushes dependencies into it. Collectors nest per thread,
innermost first.

``wrap(target, name, fn)`` installs an interceptor on a class or instance
attribute without requiring the store's author to opt in. Each call of the
wrapped attribute runs ``fn(untrack(self), original, *args, **kwargs)``,
where ``original`` is the previous implementation already bound to the
instance.
"""

import functools
import inspect
import threading
from collections.abc import Mapping, MutableMapping, MutableSequence
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Protocol, Set, Tuple

from .errors import ShapeError

_PRIMITIVES = (type(None), bool, int, float, complex, str, bytes)


class _Iterate:
    """Dependency key registered when a view is iterated or measured."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "ITERATE"


ITERATE = _Iterate()


# ============================================================================
# Dependency collection
# ============================================================================


class DependencyCollector(Protocol):
    """Receives the reads performed through tracked views."""

    def add_dependency(self, target: Any, key: Any) -> None: ...


class DependencySet:
    """Collector that remembers which ``(target, key)`` pairs were read."""

    def __init__(self):
        self._reads: List[Tuple[Any, Any]] = []
        self._seen: Set[Tuple[int, Any]] = set()

    def add_dependency(self, target: Any, key: Any) -> None:
        marker = (id(target), key)
        if marker not in self._seen:
            self._seen.add(marker)
            self._reads.append((target, key))

    @property
    def dependencies(self) -> List[Tuple[Any, Any]]:
        return list(self._reads)

    def keys_for(self, target: Any) -> List[Any]:
        return [key for owner, key in self._reads if owner is target]

    def clear(self) -> None:
        self._reads.clear()
        self._seen.clear()

    def __contains__(self, item) -> bool:
        target, key = item
        return (id(untrack(target)), key) in self._seen

    def __len__(self) -> int:
        return len(self._reads)

    def __repr__(self) -> str:
        return f"DependencySet({len(self._reads)} reads)"


_local = threading.local()


def _collectors() -> List[Optional[DependencyCollector]]:
    if not hasattr(_local, "stack"):
        _local.stack = []
    return _local.stack


def active_collector() -> Optional[DependencyCollector]:
    stack = _collectors()
    return stack[-1] if stack else None


@contextmanager
def collect_dependencies(collector: Optional[DependencyCollector]):
    """Make ``collector`` the active collector for this thread.

    Passing None suspends collection inside the block.
    """
    stack = _collectors()
    stack.append(collector)
    try:
        yield collector
    finally:
        stack.pop()


def _register(target: Any, key: Any) -> None:
    collector = active_collector()
    if collector is not None:
        collector.add_dependency(target, key)


# ============================================================================
# Views
# ============================================================================


def _is_trackable(value: Any) -> bool:
    if isinstance(value, TrackedView):
        return True
    if isinstance(value, _PRIMITIVES):
        return False
    if isinstance(value, (Mapping, MutableSequence)):
        return True
    if callable(value) or isinstance(value, (tuple, frozenset, set)):
        return False
    return hasattr(value, "__dict__")


def _nested(value: Any) -> Any:
    return TrackedView(value) if _is_trackable(value) else value


def _read(target: Any, key: Any, default: Any = None) -> Any:
    if isinstance(target, Mapping):
        return target[key] if key in target else default
    if isinstance(target, MutableSequence) and isinstance(key, int):
        return target[key] if -len(target) <= key < len(target) else default
    if not isinstance(key, str):
        return default
    return getattr(target, key, default)


def _write(target: Any, key: Any, value: Any) -> None:
    if isinstance(target, (MutableMapping, MutableSequence)):
        target[key] = value
    else:
        setattr(target, key, value)


class TrackedView:
    """Dependency-registering facade over a backing store object."""

    __slots__ = ("_target", "__weakref__")

    def __init__(self, target: Any):
        object.__setattr__(self, "_target", target)

    def get(self, key: Any, default: Any = None) -> Any:
        """Tracked read; absent keys yield ``default``."""
        target = self._target
        _register(target, key)
        return _nested(_read(target, key, default))

    def set(self, key: Any, value: Any) -> None:
        _write(self._target, key, untrack(value))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        target = object.__getattribute__(self, "_target")
        if isinstance(target, Mapping) and name in target:
            _register(target, name)
            return _nested(target[name])
        value = getattr(target, name)
        if inspect.ismethod(value) or inspect.isbuiltin(value):
            return value
        _register(target, name)
        return _nested(value)

    def __setattr__(self, name: str, value: Any) -> None:
        target = self._target
        if isinstance(target, MutableMapping):
            target[name] = untrack(value)
        else:
            setattr(target, name, untrack(value))

    def __delattr__(self, name: str) -> None:
        delattr(self._target, name)

    def __getitem__(self, key: Any) -> Any:
        target = self._target
        _register(target, key)
        return _nested(target[key])

    def __setitem__(self, key: Any, value: Any) -> None:
        self._target[key] = untrack(value)

    def __delitem__(self, key: Any) -> None:
        del self._target[key]

    def __contains__(self, key: Any) -> bool:
        target = self._target
        _register(target, key)
        return key in target

    def __iter__(self) -> Iterator[Any]:
        target = self._target
        _register(target, ITERATE)
        if isinstance(target, Mapping):
            return iter(list(target))
        return (_nested(item) for item in list(target))

    def __len__(self) -> int:
        target = self._target
        _register(target, ITERATE)
        return len(target)

    def __bool__(self) -> bool:
        return bool(self._target)

    def __eq__(self, other: Any) -> bool:
        return self._target == untrack(other)

    def __hash__(self) -> int:
        return hash(self._target)

    def __repr__(self) -> str:
        return f"track({self._target!r})"


def track(value: Any) -> TrackedView:
    """Return a tracked view of ``value``; views are returned unchanged."""
    if isinstance(value, TrackedView):
        return value
    if isinstance(value, _PRIMITIVES):
        raise ShapeError(f"Cannot track a {type(value).__name__} value")
    return TrackedView(value)


def untrack(value: Any) -> Any:
    """Return the backing object of a view, or ``value`` itself."""
    if isinstance(value, TrackedView):
        return object.__getattribute__(value, "_target")
    return value


def is_proxy(value: Any) -> bool:
    return isinstance(value, TrackedView)


# ============================================================================
# Attribute interception
# ============================================================================


def _noop(*args, **kwargs) -> None:
    return None


def _lookup(target: Any, name: str) -> Tuple[Any, bool]:
    """Find the raw attribute and whether it is the target's own."""
    own = getattr(target, "__dict__", {})
    if name in own:
        return own[name], True
    owner_mro = target.__mro__ if isinstance(target, type) else type(target).__mro__
    for klass in owner_mro:
        if name in klass.__dict__:
            return klass.__dict__[name], False
    return None, False


def _wrap_class(cls: type, name: str, raw: Any, fn: Callable) -> None:
    if isinstance(raw, property):
        getter = raw.fget or _noop

        def wrapped_getter(self):
            instance = untrack(self)
            return fn(instance, functools.partial(getter, instance))

        setattr(cls, name, property(wrapped_getter, raw.fset, raw.fdel, raw.__doc__))
        return

    if isinstance(raw, classmethod):
        func = raw.__func__

        @functools.wraps(func)
        def class_method(klass, *args, **kwargs):
            return fn(klass, raw.__get__(None, klass), *args, **kwargs)

        setattr(cls, name, classmethod(class_method))
        return

    if isinstance(raw, staticmethod):
        func = raw.__func__

        @functools.wraps(func)
        def static_method(*args, **kwargs):
            return fn(cls, func, *args, **kwargs)

        setattr(cls, name, staticmethod(static_method))
        return

    original = raw if raw is not None else _noop

    def method(self, *args, **kwargs):
        instance = untrack(self)
        if hasattr(original, "__get__"):
            bound = original.__get__(instance, type(instance))
        else:
            bound = original
        return fn(instance, bound, *args, **kwargs)

    if callable(original) and hasattr(original, "__name__"):
        method = functools.wraps(original)(method)
    method.__name__ = name
    setattr(cls, name, method)


def _wrap_instance(obj: Any, name: str, raw: Any, own: bool, fn: Callable) -> None:
    if isinstance(raw, property):
        raise ShapeError(
            f"Cannot wrap property {name!r} on an instance; wrap its class instead"
        )
    if raw is None:
        original = _noop
    elif own or not hasattr(raw, "__get__"):
        original = raw
    else:
        original = raw.__get__(obj, type(obj))

    def method(*args, **kwargs):
        return fn(obj, original, *args, **kwargs)

    method.__name__ = name
    setattr(obj, name, method)


def wrap(target: Any, name: str, fn: Callable) -> None:
    """Intercept attribute ``name`` of a class or instance with ``fn``.

    ``fn`` receives ``(instance, original, *args, **kwargs)``; for a property
    it receives ``(instance, original_getter)``. Classmethods and
    staticmethods stay what they were and pass the class in place of the
    instance. The attribute does not need
    to exist: a missing one is treated as a no-op function. Wrapping again
    stacks on top of the previous wrapper.
    """
    target = untrack(target)
    if isinstance(target, _PRIMITIVES):
        raise ShapeError(f"Cannot wrap attributes of a {type(target).__name__}")
    raw, own = _lookup(target, name)
    if isinstance(target, type):
        _wrap_class(target, name, raw, fn)
    else:
        _wrap_instance(target, name, raw, own, fn)


def peek(target: Any, key: Any, default: Any = None) -> Any:
    """Untracked read of ``key``; absent keys yield ``default``."""
    return _read(untrack(target), key, default)
