"""Tests for engine configuration."""

import logging

import pytest

from formvalidator.config import EngineConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FORMVALIDATOR_FIRST_FIELDS", "FORMVALIDATOR_GUARD_STALE", "FORMVALIDATOR_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.first_fields is True
        assert config.guard_stale_results is True
        assert config.log_level == "WARNING"

    def test_from_env_defaults(self):
        assert EngineConfig.from_env() == EngineConfig()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("FORMVALIDATOR_FIRST_FIELDS", "false")
        monkeypatch.setenv("FORMVALIDATOR_GUARD_STALE", "0")
        monkeypatch.setenv("FORMVALIDATOR_LOG_LEVEL", "debug")
        config = EngineConfig.from_env()
        assert config.first_fields is False
        assert config.guard_stale_results is False
        assert config.log_level == "DEBUG"

    def test_blank_flag_uses_default(self, monkeypatch):
        monkeypatch.setenv("FORMVALIDATOR_GUARD_STALE", "  ")
        assert EngineConfig.from_env().guard_stale_results is True

    def test_invalid_flag(self, monkeypatch):
        monkeypatch.setenv("FORMVALIDATOR_FIRST_FIELDS", "maybe")
        with pytest.raises(ValueError, match="FORMVALIDATOR_FIRST_FIELDS"):
            EngineConfig.from_env()

    def test_log_level_number(self):
        assert EngineConfig(log_level="INFO").log_level_number == logging.INFO

    def test_unknown_log_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            EngineConfig(log_level="CHATTY").log_level_number
