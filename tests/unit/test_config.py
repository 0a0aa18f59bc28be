"""
Unit Tests - Configuration
"""
import logging

import pytest
import structlog
from pydantic import ValidationError

from order_analytics.config import Settings, get_settings
from order_analytics.config.logging import configure_logging


class TestSettings:
    """Tests for Settings"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PIPELINE_REQUIRE_CUSTOMER_MATCH", raising=False)
        settings = Settings()

        assert settings.pipeline.require_customer_match is False
        assert settings.data_lake.orders_table == "olist_orders_dataset"
        assert settings.data_lake.default_format in ("csv", "parquet")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PIPELINE_REQUIRE_CUSTOMER_MATCH", "true")
        monkeypatch.setenv("DATA_DEFAULT_FORMAT", "PARQUET")
        monkeypatch.setenv("DATA_QUALITY_STRICT_MODE", "true")

        settings = Settings()

        assert settings.pipeline.require_customer_match is True
        assert settings.data_lake.default_format == "parquet"
        assert settings.data_quality.strict_mode is True

    def test_rejects_unknown_format(self, monkeypatch):
        monkeypatch.setenv("DATA_DEFAULT_FORMAT", "xlsx")

        with pytest.raises(ValidationError):
            Settings()

    def test_rejects_unknown_environment(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "moon")

        with pytest.raises(ValidationError):
            Settings()


class TestConfigureLogging:
    """Tests for configure_logging"""

    @pytest.fixture(autouse=True)
    def restore_logging(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        structlog.reset_defaults()
        get_settings.cache_clear()

    def test_level_and_log_file(self, monkeypatch, tmp_path):
        log_file = tmp_path / "pipeline.log"
        monkeypatch.setenv("LOG_FILE", str(log_file))
        monkeypatch.setenv("LOG_FORMAT", "json")
        get_settings.cache_clear()

        configure_logging("warning")
        structlog.get_logger("order_analytics.test").warning("Orders without a customer excluded", orphan_orders=1)
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert logging.getLogger().level == logging.WARNING
        assert '"orphan_orders": 1' in log_file.read_text(encoding="utf-8")
