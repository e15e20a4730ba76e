"""Tests for settings loading and bus construction from configuration."""

from __future__ import annotations

import pytest
import yaml

from typed_event_bus import (
    Event,
    InvalidArgumentError,
    ListenerFault,
    LoggingExceptionHandler,
    create_bus,
)
from typed_event_bus.config import (
    DEFAULT_CONFIG_PATH,
    OVERLAY_ENV_VAR,
    get_config,
    get_typed_config,
)
from typed_event_bus.domain.models import AppConfig


class Tick(Event):
    pass


def _noop(event: Event) -> None:
    pass


def _boom(event: Event) -> None:
    raise ValueError("boom")


# =====================================================================
# Settings
# =====================================================================


class TestSettings:
    """Default file, overlay, and environment resolution."""

    def test_default_file_shipped(self):
        assert DEFAULT_CONFIG_PATH.exists()

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv(OVERLAY_ENV_VAR, raising=False)
        cfg = get_typed_config()
        assert cfg.get("bus.bucket_factory") == "list"
        assert cfg.get("bus.log_listener_faults") is False
        assert cfg.get("logging.level") == "INFO"

    def test_overlay_argument(self, tmp_path):
        overlay = tmp_path / "overlay.yaml"
        overlay.write_text(yaml.safe_dump({"bus": {"bucket_factory": "unique"}}))
        cfg = get_typed_config(overlay_path=overlay)
        assert cfg.get("bus.bucket_factory") == "unique"
        assert cfg.get("bus.log_listener_faults") is False

    def test_overlay_env_var(self, tmp_path, monkeypatch):
        overlay = tmp_path / "overlay.yaml"
        overlay.write_text(yaml.safe_dump({"logging": {"level": "DEBUG"}}))
        monkeypatch.setenv(OVERLAY_ENV_VAR, str(overlay))
        assert get_typed_config().get("logging.level") == "DEBUG"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("TEB_BUS__LOG_LISTENER_FAULTS", "true")
        assert get_typed_config().get("bus.log_listener_faults") is True

    def test_get_config_is_cached(self):
        get_config.cache_clear()
        try:
            first = get_config()
            assert get_config() is first
            assert "bus" in first
        finally:
            get_config.cache_clear()


# =====================================================================
# create_bus
# =====================================================================


class TestCreateBus:
    """Factory building a bus from configuration."""

    def test_defaults(self):
        bus = create_bus()
        assert bus.exception_handler is None
        assert bus.register(Tick, _noop) is not None
        assert bus.register(Tick, _noop) is not None

    def test_unique_factory_from_dict(self):
        bus = create_bus({"bus": {"bucket_factory": "unique"}})
        assert bus.register(Tick, _noop) is not None
        assert bus.register(Tick, _noop) is None

    def test_factory_name_case_insensitive(self):
        bus = create_bus(AppConfig(data={"bus": {"bucket_factory": "UNIQUE"}}))
        bus.register(Tick, _noop)
        assert bus.register(Tick, _noop) is None

    def test_unknown_factory(self):
        with pytest.raises(InvalidArgumentError, match="bucket_factory"):
            create_bus({"bus": {"bucket_factory": "heap"}})

    def test_log_listener_faults(self, caplog):
        bus = create_bus(AppConfig(data={"bus": {"log_listener_faults": True}}))
        assert isinstance(bus.exception_handler, LoggingExceptionHandler)
        bus.register(Tick, _boom)
        bus.post(Tick())
        assert any("boom" in r.getMessage() for r in caplog.records)

    def test_escalates_without_logging_handler(self):
        bus = create_bus({"bus": {"log_listener_faults": False}})
        bus.register(Tick, _boom)
        with pytest.raises(ListenerFault):
            bus.post(Tick())

    def test_missing_bus_section(self):
        bus = create_bus({"logging": {"level": "INFO"}})
        assert bus.exception_handler is None
