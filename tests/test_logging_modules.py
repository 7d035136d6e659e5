"""
Unit tests for logging modules.

Tests cover:
1. Correlation ID and cache ID management
2. Log formatters (JSON) and the structured adapter
3. Logging configuration (YAML + environment)
4. setup_logging
"""

import pytest
import logging
import json
import sys

from mediacache.common.logging import (
    CorrelationLogFilter,
    JSONFormatter,
    LoggingConfig,
    StructuredLogAdapter,
    cache_context,
    generate_correlation_id,
    get_cache_id,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)


def make_record(name="test", level=logging.INFO, msg="Test message", exc_info=None):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


# =============================================================================
# Correlation ID Tests
# =============================================================================

class TestCorrelationID:
    """Tests for correlation ID management."""

    def test_get_correlation_id_default(self):
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        set_correlation_id("test-correlation-123")
        assert get_correlation_id() == "test-correlation-123"

    def test_correlation_id_uniqueness(self):
        ids = [generate_correlation_id() for _ in range(10)]
        assert len(set(ids)) == len(ids)

    def test_correlation_id_thread_safety(self):
        """Test correlation IDs are thread-local."""
        import threading

        results = {}

        def set_and_get(thread_id):
            set_correlation_id(f"thread-{thread_id}")
            results[thread_id] = get_correlation_id()

        threads = [threading.Thread(target=set_and_get, args=(i,)) for i in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for i in range(5):
            assert results[i] == f"thread-{i}"


# =============================================================================
# Cache Context Tests
# =============================================================================

class TestCacheContext:
    """Tests for cache_context."""

    def test_binds_and_restores(self):
        assert get_cache_id() is None
        with cache_context("catalog") as cache_id:
            assert cache_id == "catalog"
            assert get_cache_id() == "catalog"
        assert get_cache_id() is None

    def test_nested(self):
        with cache_context("outer"):
            with cache_context("inner"):
                assert get_cache_id() == "inner"
            assert get_cache_id() == "outer"

    def test_restored_on_exception(self):
        with pytest.raises(RuntimeError):
            with cache_context("catalog"):
                raise RuntimeError("boom")
        assert get_cache_id() is None

    def test_filter_injects_context(self):
        record = make_record()
        set_correlation_id("corr-1")
        with cache_context("catalog"):
            assert CorrelationLogFilter().filter(record) is True

        assert record.correlation_id == "corr-1"
        assert record.cache_id == "catalog"


# =============================================================================
# JSONFormatter Tests
# =============================================================================

class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_json_formatter_basic(self):
        parsed = json.loads(JSONFormatter().format(make_record()))

        assert parsed["message"] == "Test message"
        assert parsed["level"] == "INFO"
        assert "timestamp" in parsed

    def test_json_formatter_context_and_data(self):
        record = make_record()
        record.correlation_id = "corr-1"
        record.cache_id = "catalog"
        record.structured_data = {"media_id": "42"}

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["correlation_id"] == "corr-1"
        assert parsed["cache_id"] == "catalog"
        assert parsed["data"] == {"media_id": "42"}
        assert parsed["media_id"] == "42"

    def test_json_formatter_with_exception(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            record = make_record(level=logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["exception"]["type"] == "ValueError"
        assert parsed["exception"]["message"] == "Test error"

    @pytest.mark.parametrize("name, component", [
        ("mediacache.core.cache.media_cache", "cache.media_cache"),
        ("mediacache.common.logging.logger", "common.logging.logger"),
        ("mediacache.metadata.reader", "metadata.reader"),
        ("__main__", "main"),
        ("other.module", "other.module"),
    ])
    def test_component_extraction(self, name, component):
        parsed = json.loads(JSONFormatter().format(make_record(name=name)))
        assert parsed["component"] == component

    def test_extra_fields(self):
        parsed = json.loads(JSONFormatter(extra_fields={"service": "media-cache"}).format(make_record()))
        assert parsed["service"] == "media-cache"


# =============================================================================
# StructuredLogAdapter Tests
# =============================================================================

class TestStructuredLogAdapter:
    """Tests for the data= kwarg."""

    def test_get_logger_returns_adapter(self):
        assert isinstance(get_logger("mediacache.test"), StructuredLogAdapter)

    def test_data_attached_to_record(self, caplog):
        logger = get_logger("mediacache.test")
        with caplog.at_level(logging.INFO):
            logger.info("Inserted", data={"media_id": "42"})

        record = caplog.records[-1]
        assert record.structured_data == {"media_id": "42"}

    def test_bound_fields_on_record(self, caplog):
        logger = get_logger("mediacache.test").bind(cache_id="catalog")
        with caplog.at_level(logging.WARNING):
            logger.warning("careful")

        assert caplog.records[-1].cache_id == "catalog"

    def test_bind_returns_new_adapter(self):
        base = get_logger("mediacache.test")
        bound = base.bind(correlation_id="adapter-1")

        assert bound is not base
        assert bound.logger is base.logger
        assert base.extra == {}

    def test_bound_value_wins_over_context(self):
        record = make_record()
        record.cache_id = "bound"
        with cache_context("from-context"):
            CorrelationLogFilter().filter(record)

        assert record.cache_id == "bound"


# =============================================================================
# LoggingConfig Tests
# =============================================================================

class TestLoggingConfig:
    """Tests for YAML logging configuration."""

    @pytest.fixture
    def config_file(self, tmp_path):
        path = tmp_path / "logging-config.yaml"
        path.write_text(
            "default_level: warning\n"
            "components:\n"
            "  cache:\n"
            "    level: debug\n"
            "    json_format: true\n"
            "  codec: error\n"
            "modules:\n"
            "  mediacache.core.data: info\n"
        )
        return str(path)

    def test_levels_from_yaml(self, config_file, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        config = LoggingConfig(config_file)

        assert config.get_level() == "WARNING"
        assert config.get_level("cache") == "DEBUG"
        assert config.get_level("codec") == "ERROR"

    def test_json_format_from_yaml(self, config_file, monkeypatch):
        monkeypatch.delenv("LOG_JSON", raising=False)
        config = LoggingConfig(config_file)

        assert config.get_json_format("cache") is True
        assert config.get_json_format() is False

    def test_env_override(self, config_file, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL_CACHE", "error")
        monkeypatch.setenv("LOG_JSON_CACHE", "no")
        config = LoggingConfig(config_file)

        assert config.get_level("cache") == "ERROR"
        assert config.get_json_format("cache") is False

    def test_module_level(self, config_file):
        config = LoggingConfig(config_file)
        assert config.get_module_level("mediacache.core.data") == "INFO"
        assert config.get_module_level("mediacache.core.cache") is None

    def test_for_component(self, config_file, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL_CACHE", raising=False)
        monkeypatch.delenv("LOG_JSON_CACHE", raising=False)
        resolved = LoggingConfig(config_file).for_component("cache")

        assert resolved.level == "DEBUG"
        assert resolved.json_format is True

    def test_missing_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        config = LoggingConfig(str(tmp_path / "absent.yaml"))
        assert config.get_level() == "INFO"


# =============================================================================
# setup_logging Tests
# =============================================================================

class TestSetupLogging:
    """Tests for root logger configuration."""

    def test_console_handler_with_json(self, restore_root_logger):
        setup_logging(level="DEBUG", json_format=True, force=True)

        root = restore_root_logger
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_level_and_format_from_env(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_JSON", "true")
        setup_logging(force=True)

        root = restore_root_logger
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "cache.log"
        setup_logging(level="INFO", log_file=str(log_file), json_format=False, force=True)

        get_logger("mediacache.test").info("to file", data={"k": "v"})
        for handler in restore_root_logger.handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["data"] == {"k": "v"}
