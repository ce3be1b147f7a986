"""Settings validation tests."""

import pytest
from pydantic import ValidationError

from gateway.config import Settings


def _settings(**values) -> Settings:
    return Settings(_env_file=None, **values)


class TestSettings:
    def test_defaults_match_gateway_policy(self):
        settings = _settings()
        assert settings.rate_limit_max == 2000
        assert settings.rate_limit_window_ms == 3_600_000
        assert settings.body_limit_bytes == 10 * 1024
        assert settings.trust_proxy is True
        assert settings.is_development

    def test_environment_normalized(self):
        settings = _settings(environment=" Production ")
        assert settings.is_production
        assert not settings.is_development

    def test_unknown_environment_rejected(self):
        with pytest.raises(ValidationError):
            _settings(environment="staging")

    def test_log_level_uppercased(self):
        assert _settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            _settings(log_level="chatty")

    def test_replace_with_cannot_reintroduce_operator(self):
        with pytest.raises(ValidationError):
            _settings(sanitize_replace_with=".")

    def test_zero_window_rejected(self):
        with pytest.raises(ValidationError):
            _settings(rate_limit_window_ms=0)

    def test_cors_origins_list(self):
        settings = _settings(cors_origins="https://a.example, https://b.example")
        assert settings.cors_origins_list == ["https://a.example", "https://b.example"]

    def test_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_MAX", "7")
        monkeypatch.setenv("TRUST_PROXY", "false")
        settings = _settings()
        assert settings.rate_limit_max == 7
        assert settings.trust_proxy is False
