"""Tests for environment configuration."""

import logging

import pytest

from regsnap.config import Backend, Settings, get_settings
from regsnap.core.exceptions import ConfigurationError
from regsnap.core.models import ValueMode


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings.from_env()
        assert settings.value_mode is ValueMode.EAGER
        assert settings.backend is Backend.AUTO
        assert settings.log_level == "WARNING"
        assert settings.log_level_number == logging.WARNING

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REGSNAP_VALUE_MODE", "LAZY")
        monkeypatch.setenv("REGSNAP_BACKEND", "memory")
        monkeypatch.setenv("REGSNAP_LOG_LEVEL", "debug")

        settings = Settings.from_env()
        assert settings.value_mode is ValueMode.LAZY
        assert settings.backend is Backend.MEMORY
        assert settings.log_level_number == logging.DEBUG

    def test_invalid_value_mode(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REGSNAP_VALUE_MODE", "sometimes")
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env()
        assert exc_info.value.env_var == "REGSNAP_VALUE_MODE"
        assert "eager" in str(exc_info.value)

    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REGSNAP_LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigurationError):
            Settings.from_env()

    def test_frozen(self) -> None:
        settings = Settings()
        with pytest.raises(ValueError):
            settings.value_mode = ValueMode.LAZY  # type: ignore[misc]


class TestGetSettings:
    def test_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings()
        monkeypatch.setenv("REGSNAP_VALUE_MODE", "lazy")
        assert get_settings() is first

        get_settings.cache_clear()
        assert get_settings().value_mode is ValueMode.LAZY
