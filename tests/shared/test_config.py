"""Tests for the environment configuration layer."""

import pytest

from app.app_config import AppEnvironConfig, get_app_environ_config
from app.shared.config import EnvironConfig, config


class TestEnvironConfig:
    def test_is_singleton(self):
        assert EnvironConfig() is config

    def test_get_returns_default_for_missing_key(self):
        assert config.get("LIVE_PULSE_DOES_NOT_EXIST", "fallback") == "fallback"

    def test_getitem_raises_for_missing_key(self):
        with pytest.raises(KeyError):
            config["LIVE_PULSE_DOES_NOT_EXIST"]

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("https://a.example, https://b.example", ["https://a.example", "https://b.example"]),
            (" , ", ["*"]),
            ("*", ["*"]),
        ],
    )
    def test_cors_origins(self, monkeypatch, raw, expected):
        """Comma-separated origins are split and trimmed; blank means any."""
        monkeypatch.setitem(config._config, "API_CORS_ORIGINS", raw)
        assert config.get_cors_origins() == expected


class TestAppEnvironConfig:
    def test_defaults_from_env_example(self):
        """Registry and token defaults match the committed env.example."""
        cfg = get_app_environ_config()

        assert cfg.LIVE_COMMENT_CAPACITY == 50
        assert cfg.RTC_TOKEN_TTL_SECONDS == 3600
        assert cfg.LIVE_SESSION_IDLE_TIMEOUT_SECONDS >= 0

    def test_overrides(self):
        cfg = AppEnvironConfig(RTC_APP_ID="x", LIVE_COMMENT_CAPACITY=5)

        assert cfg.RTC_APP_ID == "x"
        assert cfg.LIVE_COMMENT_CAPACITY == 5
