"""Unit tests for configuration, logging setup and correlation IDs."""

import logging

import pytest

from live_feed.config import ServerConfig, get_config, load_config, reset_config
from live_feed.log_system.correlation import (
    CorrelationIdFilter,
    clear_initialization_correlation_id,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    set_initialization_correlation_id,
)
from live_feed.logging_config import setup_logging


class TestLoadConfig:
    """Tests for reading LIVE_FEED_* variables."""

    def test_defaults(self):
        """Test defaults when no variables are set."""
        config = load_config({})

        assert config.base_interval_ms == 10_000
        assert config.max_interval_ms == 60_000
        assert config.multiplier == 1.5
        assert config.max_items == 100
        assert config.source_urls == ["http://127.0.0.1:8000/data/activity.json"]

    def test_overrides(self):
        """Test every LIVE_FEED_* variable is honored."""
        config = load_config({
            "LIVE_FEED_GATEWAY_URL": "https://gw.example.com/",
            "LIVE_FEED_BASE_INTERVAL_MS": "5000",
            "LIVE_FEED_MAX_INTERVAL_MS": "30000",
            "LIVE_FEED_MULTIPLIER": "2",
            "LIVE_FEED_MAX_ITEMS": "50",
            "LIVE_FEED_LOG_LEVEL": "debug",
        })

        assert config.base_interval_ms == 5000
        assert config.max_interval_ms == 30000
        assert config.multiplier == 2.0
        assert config.max_items == 50
        assert config.log_level == "DEBUG"
        assert config.source_urls[0] == "https://gw.example.com/api/activity"

    def test_blank_values_use_defaults(self):
        """Test blank variables fall back to defaults."""
        assert load_config({"LIVE_FEED_MAX_ITEMS": "  "}).max_items == 100

    def test_unparsable_number(self):
        """Test a non-numeric value names the offending variable."""
        with pytest.raises(ValueError, match="LIVE_FEED_MAX_ITEMS"):
            load_config({"LIVE_FEED_MAX_ITEMS": "lots"})

    @pytest.mark.parametrize("overrides", [
        {"base_interval_ms": 0},
        {"base_interval_ms": 70_000},
        {"multiplier": 0.9},
        {"max_items": 0},
        {"request_timeout": 0},
    ])
    def test_invalid_settings_fail_fast(self, overrides):
        """Test out-of-range settings are rejected at construction."""
        with pytest.raises(ValueError):
            ServerConfig(**overrides)

    def test_get_config_is_cached(self, monkeypatch):
        """Test the global config is read once."""
        monkeypatch.setenv("LIVE_FEED_NAME", "activity-panel")
        reset_config()
        try:
            first = get_config()
            monkeypatch.setenv("LIVE_FEED_NAME", "changed")
            assert get_config() is first
            assert first.name == "activity-panel"
        finally:
            reset_config()


class TestCorrelation:
    """Tests for correlation ID propagation."""

    def test_generate_has_prefix(self):
        """Test generated IDs carry their prefix."""
        assert generate_correlation_id("poll").startswith("poll_")

    def test_scope_sets_and_restores(self):
        """Test a correlation scope restores the previous ID on exit."""
        assert get_correlation_id() is None

        with correlation_scope("tool") as correlation_id:
            assert get_correlation_id() == correlation_id

        assert get_correlation_id() is None

    def test_initialization_id_is_fallback(self):
        """Test the startup ID is used outside any scope."""
        set_initialization_correlation_id("startup_1234")
        try:
            assert get_correlation_id() == "startup_1234"
        finally:
            clear_initialization_correlation_id()

    def test_filter_attaches_id(self):
        """Test the log filter stamps records with the current ID."""
        record = logging.LogRecord("live_feed", logging.INFO, __file__, 1, "hello", None, None)

        with correlation_scope("poll") as correlation_id:
            CorrelationIdFilter().filter(record)

        assert record.correlation_id == correlation_id


class TestSetupLogging:
    """Tests for logger configuration."""

    def test_installs_single_handler(self):
        """Test repeated setup replaces rather than stacks handlers."""
        root = logging.getLogger("live_feed")
        saved = (list(root.handlers), root.level, root.propagate)
        try:
            setup_logging(ServerConfig(log_level="debug"))
            setup_logging(ServerConfig(log_level="warning"))

            ours = [h for h in root.handlers if getattr(h, "_live_feed_handler", False)]
            assert len(ours) == 1
            assert root.level == logging.WARNING
        finally:
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])
            root.propagate = saved[2]
