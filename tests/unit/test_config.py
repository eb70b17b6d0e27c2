"""Unit tests for RuntimeConfig."""

import pytest

from storeflux import Runtime, RuntimeConfig


@pytest.mark.unit
@pytest.mark.config
def test_defaults():
    config = RuntimeConfig()
    assert config.flush_mode == "deferred"
    assert config.event_log_capacity == 1000
    assert config.auto_register is False
    assert config.raise_subscriber_errors is True


@pytest.mark.unit
@pytest.mark.config
def test_invalid_flush_mode_rejected():
    with pytest.raises(ValueError):
        RuntimeConfig(flush_mode="eventually")


@pytest.mark.unit
@pytest.mark.config
def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        RuntimeConfig(event_log_capacity=-1)


@pytest.mark.unit
@pytest.mark.config
def test_from_env_reads_prefixed_variables():
    environ = {
        "STOREFLUX_FLUSH_MODE": "Immediate",
        "STOREFLUX_EVENT_LOG_CAPACITY": "none",
        "STOREFLUX_AUTO_REGISTER": "yes",
        "STOREFLUX_RAISE_SUBSCRIBER_ERRORS": "0",
        "UNRELATED": "1",
    }
    config = RuntimeConfig.from_env(environ=environ)

    assert config == RuntimeConfig(
        flush_mode="immediate",
        event_log_capacity=None,
        auto_register=True,
        raise_subscriber_errors=False,
    )


@pytest.mark.unit
@pytest.mark.config
def test_from_env_uses_process_environment(monkeypatch):
    monkeypatch.setenv("APP_EVENT_LOG_CAPACITY", "5")
    config = RuntimeConfig.from_env(prefix="APP_")
    assert config.event_log_capacity == 5


@pytest.mark.unit
@pytest.mark.config
@pytest.mark.parametrize(
    "name, value",
    [
        ("STOREFLUX_AUTO_REGISTER", "maybe"),
        ("STOREFLUX_EVENT_LOG_CAPACITY", "lots"),
        ("STOREFLUX_EVENT_LOG_CAPACITY", "-3"),
        ("STOREFLUX_FLUSH_MODE", "later"),
    ],
)
def test_from_env_rejects_bad_values(name, value):
    with pytest.raises(ValueError):
        RuntimeConfig.from_env(environ={name: value})


@pytest.mark.unit
@pytest.mark.config
def test_with_options_returns_modified_copy():
    base = RuntimeConfig()
    changed = base.with_options(auto_register=True)
    assert changed.auto_register is True
    assert base.auto_register is False


@pytest.mark.unit
@pytest.mark.config
def test_runtime_applies_capacity_and_error_policy(counter_class):
    store = counter_class()
    config = RuntimeConfig(event_log_capacity=1, raise_subscriber_errors=False)
    with Runtime(config) as runtime:
        runtime.register(store)
        runtime.flushed.subscribe(lambda flushed: 1 / 0)

        runtime.dispatch("set", store, "count", 1)
        runtime.dispatch("set", store, "count", 2)

        assert [event.id for event in runtime.log] == [1]
