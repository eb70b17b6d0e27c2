"""
Structural diffing of store shapes.

A KeyValueDiffer remembers the enumerable entries of a value (the keys of a
mapping, or the public instance attributes of an object) and reports which of
them were added, removed or changed since the previous call. Values are
compared with ``same_value``, so a diff never looks inside nested objects.

The first ``diff`` call primes the differ and reports every key as added.
Callers that only want to hear about later changes call it once on creation:

    differ = KeyValueDiffers.default().find(store).create()
    differ.diff(store)            # prime
    ...
    if differ.diff(store) is not None:
        ...                       # something changed
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np

from .errors import ShapeError

_NUMBER_TYPES = (int, float, complex, np.number)
_SCALAR_TYPES = (int, float, complex, str, bytes, bool, type(None), np.generic)


def _is_bool(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


def _is_number(value: Any) -> bool:
    return isinstance(value, _NUMBER_TYPES) and not _is_bool(value)


def _is_nan(value: Any) -> bool:
    if isinstance(value, (float, np.floating)):
        return bool(np.isnan(value))
    return False


def _same_real(a: Any, b: Any) -> bool:
    if a != b:
        return _is_nan(a) and _is_nan(b)
    if a == 0:
        return bool(np.signbit(a) == np.signbit(b))
    return True


def _same_number(a: Any, b: Any) -> bool:
    if isinstance(a, (complex, np.complexfloating)) or isinstance(
        b, (complex, np.complexfloating)
    ):
        a, b = complex(a), complex(b)
        return _same_real(a.real, b.real) and _same_real(a.imag, b.imag)
    return _same_real(a, b)


def same_value(a: Any, b: Any) -> bool:
    """Identity comparison with value semantics for scalars.

    Numbers compare by value, NaN equals NaN, and -0.0 differs from 0.0.
    Strings and bytes compare by value. Booleans never equal numbers.
    Every other object compares by identity; there is no deep equality.
    """
    if a is b:
        return True
    if not isinstance(a, _SCALAR_TYPES) or not isinstance(b, _SCALAR_TYPES):
        return False
    if _is_bool(a) or _is_bool(b):
        return _is_bool(a) and _is_bool(b) and bool(a) == bool(b)
    if _is_number(a) and _is_number(b):
        return _same_number(a, b)
    if isinstance(a, (str, np.str_)) and isinstance(b, (str, np.str_)):
        return str(a) == str(b)
    if isinstance(a, (bytes, np.bytes_)) and isinstance(b, (bytes, np.bytes_)):
        return bytes(a) == bytes(b)
    return False


def entries(value: Any) -> Dict[Any, Any]:
    """Enumerable entries of a mapping or public attributes of an object."""
    if isinstance(value, Mapping):
        return dict(value.items())
    result = {}
    for cls in reversed(type(value).__mro__):
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name.startswith("_") or not hasattr(value, name):
                continue
            result[name] = getattr(value, name)
    try:
        attributes = vars(value)
    except TypeError:
        attributes = {}
    for name, item in attributes.items():
        if not name.startswith("_"):
            result[name] = item
    return result


def has_entries(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    if isinstance(value, _SCALAR_TYPES) or isinstance(value, (list, tuple, set)):
        return False
    return hasattr(value, "__dict__") or any(
        "__slots__" in cls.__dict__ for cls in type(value).__mro__
    )


class ChangeKind(Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


@dataclass(frozen=True)
class KeyValueChangeRecord:
    key: Any
    kind: ChangeKind
    previous: Any = None
    current: Any = None

    def __repr__(self) -> str:
        if self.kind is ChangeKind.ADDED:
            return f"Change({self.key!r}: added = {self.current!r})"
        if self.kind is ChangeKind.REMOVED:
            return f"Change({self.key!r}: removed)"
        return f"Change({self.key!r}: {self.previous!r} → {self.current!r})"


@dataclass(frozen=True)
class KeyValueChanges:
    """Non-empty result of a diff."""

    records: Sequence[KeyValueChangeRecord] = field(default_factory=tuple)

    def _of(self, kind: ChangeKind) -> List[KeyValueChangeRecord]:
        return [record for record in self.records if record.kind is kind]

    @property
    def added(self) -> List[KeyValueChangeRecord]:
        return self._of(ChangeKind.ADDED)

    @property
    def removed(self) -> List[KeyValueChangeRecord]:
        return self._of(ChangeKind.REMOVED)

    @property
    def changed(self) -> List[KeyValueChangeRecord]:
        return self._of(ChangeKind.CHANGED)

    @property
    def keys(self) -> List[Any]:
        return [record.key for record in self.records]

    def __len__(self) -> int:
        return len(self.records)


class KeyValueDiffer:
    """Stateful differ for one value shape."""

    def __init__(self):
        self._previous: Optional[Dict[Any, Any]] = None

    @property
    def primed(self) -> bool:
        return self._previous is not None

    def diff(self, value: Any) -> Optional[KeyValueChanges]:
        if not has_entries(value):
            raise ShapeError(
                f"Cannot diff {type(value).__name__}: not a mapping or object"
            )
        current = entries(value)
        previous = self._previous if self._previous is not None else {}
        self._previous = current

        records = []
        for key, item in current.items():
            if key not in previous:
                records.append(KeyValueChangeRecord(key, ChangeKind.ADDED, None, item))
            elif not same_value(previous[key], item):
                records.append(
                    KeyValueChangeRecord(key, ChangeKind.CHANGED, previous[key], item)
                )
        for key, item in previous.items():
            if key not in current:
                records.append(KeyValueChangeRecord(key, ChangeKind.REMOVED, item, None))

        return KeyValueChanges(tuple(records)) if records else None


class DefaultKeyValueDifferFactory:
    """Creates differs for mappings and attribute-bearing objects."""

    def supports(self, value: Any) -> bool:
        return has_entries(value)

    def create(self) -> KeyValueDiffer:
        return KeyValueDiffer()


class KeyValueDiffers:
    """Ordered registry of differ factories."""

    def __init__(self, factories: Iterable[Any]):
        self.factories = list(factories)

    @classmethod
    def default(cls) -> "KeyValueDiffers":
        return cls([DefaultKeyValueDifferFactory()])

    def extend(self, factories: Iterable[Any]) -> "KeyValueDiffers":
        """New registry trying ``factories`` before the existing ones."""
        return KeyValueDiffers(list(factories) + self.factories)

    def find(self, value: Any):
        for factory in self.factories:
            if factory.supports(value):
                return factory
        raise ShapeError(
            f"Cannot find a differ supporting object of type {type(value).__name__}"
        )
