"""
Runtime configuration.

RuntimeConfig is an immutable settings record handed to a Runtime at
construction. It can be built directly or read from the environment:

    config = RuntimeConfig.from_env()          # STOREFLUX_* variables
    runtime = Runtime(config)

Recognised variables (prefix configurable):
    STOREFLUX_FLUSH_MODE               deferred | immediate
    STOREFLUX_EVENT_LOG_CAPACITY       integer, or "none" for unbounded
    STOREFLUX_AUTO_REGISTER            true | false
    STOREFLUX_RAISE_SUBSCRIBER_ERRORS  true | false
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

FLUSH_MODES = ("immediate", "deferred")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _parse_capacity(name: str, raw: str) -> Optional[int]:
    value = raw.strip().lower()
    if value in ("", "none", "unbounded"):
        return None
    try:
        capacity = int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer or 'none', got {raw!r}")
    if capacity < 0:
        raise ValueError(f"{name} must not be negative, got {capacity}")
    return capacity


@dataclass(frozen=True)
class RuntimeConfig:
    """Settings for a Runtime.

    Attributes:
        flush_mode: "deferred" emits a flush on a later turn of the running
            asyncio loop, or at the action boundary when no loop is
            running; "immediate" always emits at the action boundary.
        event_log_capacity: maximum number of events kept in the log,
            None for no limit.
        auto_register: register unknown stores on their first action
            instead of raising MissingSchedulerError.
        raise_subscriber_errors: re-raise the first subscriber exception
            after a broadcast has reached every subscriber.
    """

    flush_mode: str = "deferred"
    event_log_capacity: Optional[int] = 1000
    auto_register: bool = False
    raise_subscriber_errors: bool = True

    def __post_init__(self):
        if self.flush_mode not in FLUSH_MODES:
            raise ValueError(
                f"flush_mode must be one of {FLUSH_MODES}, got {self.flush_mode!r}"
            )
        if self.event_log_capacity is not None and self.event_log_capacity < 0:
            raise ValueError("event_log_capacity must not be negative")

    @classmethod
    def from_env(
        cls, prefix: str = "STOREFLUX_", environ: Optional[Mapping[str, str]] = None
    ) -> "RuntimeConfig":
        """Build a config from environment variables, defaults for the rest."""
        env = os.environ if environ is None else environ
        values = {}

        name = prefix + "FLUSH_MODE"
        if name in env:
            values["flush_mode"] = env[name].strip().lower()

        name = prefix + "EVENT_LOG_CAPACITY"
        if name in env:
            values["event_log_capacity"] = _parse_capacity(name, env[name])

        name = prefix + "AUTO_REGISTER"
        if name in env:
            values["auto_register"] = _parse_bool(name, env[name])

        name = prefix + "RAISE_SUBSCRIBER_ERRORS"
        if name in env:
            values["raise_subscriber_errors"] = _parse_bool(name, env[name])

        return cls(**values)

    def with_options(self, **changes) -> "RuntimeConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
