"""Tests for config.py and logging_config.py."""

from __future__ import annotations

import json
import logging

import pytest
from config import ProductionConfig, TestingConfig, config_by_name
from logging_config import JSONFormatter


class TestConfig:
    def test_defaults(self):
        assert TestingConfig.COMMON_STREAM_ID == 7
        assert TestingConfig.STRICT_CATALOGUE is True
        assert (TestingConfig.ARTS_SOCIAL_SLICE, TestingConfig.ARTS_PAIR_SLICE,
                TestingConfig.ARTS_TRIPLE_CAP) == (10, 8, 50)

    def test_config_by_name(self):
        assert set(config_by_name) == {"development", "production", "testing"}

    def test_production_rejects_default_secret(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "dev-key-change-in-production")
        with pytest.raises(RuntimeError, match="SECRET_KEY"):
            ProductionConfig.validate()

    def test_production_rejects_bad_arts_cap(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "s3cret")
        monkeypatch.setattr(ProductionConfig, "ADMIN_TOKEN", "token")
        monkeypatch.setattr(ProductionConfig, "ARTS_TRIPLE_CAP", 0)
        with pytest.raises(RuntimeError, match="ARTS_TRIPLE_CAP"):
            ProductionConfig.validate()

    def test_production_warns_without_admin_token(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "s3cret")
        monkeypatch.setattr(ProductionConfig, "ADMIN_TOKEN", "")
        with pytest.warns(UserWarning, match="ADMIN_TOKEN"):
            ProductionConfig.validate()

    def test_app_uses_overrides(self, app):
        assert app.config["TESTING"] is True
        assert app.config["ADMIN_TOKEN"] == "test-admin-token"


class TestJSONFormatter:
    def test_includes_stream_id(self):
        record = logging.LogRecord("generation", logging.WARNING, __file__, 1,
                                   "Rejected %s", ("row",), None)
        record.stream_id = 4
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "Rejected row"
        assert entry["level"] == "WARNING"
        assert entry["stream_id"] == 4
        assert "request_id" not in entry
