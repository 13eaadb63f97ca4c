"""Tests for the config module."""

import pytest
from pydantic import ValidationError

from cardvault.config import Settings, get_settings


def test_default_settings():
    """Settings should load with all defaults when no env is set."""
    settings = Settings(_env_file=None)
    assert settings.log_level == "INFO"
    assert settings.db_path == "data/cardvault.db"
    assert settings.metrics_mode == "auto"
    assert settings.leaderboard_default_days == 7
    assert settings.leaderboard_default_limit == 24


def test_override_via_kwargs():
    settings = Settings(
        _env_file=None,
        log_level="DEBUG",
        db_path="/tmp/test.db",
        metrics_mode="mock",
    )
    assert settings.log_level == "DEBUG"
    assert settings.db_path == "/tmp/test.db"
    assert settings.metrics_mode == "mock"


def test_invalid_log_level():
    with pytest.raises(ValidationError, match="log_level"):
        Settings(_env_file=None, log_level="INVALID")


def test_log_level_case_insensitive():
    settings = Settings(_env_file=None, log_level="debug")
    assert settings.log_level == "DEBUG"


def test_invalid_metrics_mode():
    with pytest.raises(ValidationError, match="metrics_mode"):
        Settings(_env_file=None, metrics_mode="scrape")


def test_metrics_mode_from_env(monkeypatch):
    monkeypatch.setenv("METRICS_MODE", "LIVE")
    settings = Settings(_env_file=None)
    assert settings.metrics_mode == "live"


def test_auto_mode_without_token_uses_mock():
    settings = Settings(_env_file=None, metrics_mode="auto", x_bearer_token="")
    assert settings.has_x_token() is False
    assert settings.use_live_metrics() is False


def test_auto_mode_with_token_goes_live():
    settings = Settings(_env_file=None, metrics_mode="auto", x_bearer_token="real-token")
    assert settings.use_live_metrics() is True


def test_placeholder_token_is_not_a_token():
    settings = Settings(_env_file=None, x_bearer_token="AAAA...")
    assert settings.has_x_token() is False


def test_mock_mode_ignores_token():
    settings = Settings(_env_file=None, metrics_mode="mock", x_bearer_token="real-token")
    assert settings.use_live_metrics() is False


def test_non_positive_timeout_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, metrics_timeout_s=0)


def test_get_settings_helper():
    settings = get_settings(log_level="WARNING", leaderboard_default_limit="12")
    assert settings.log_level == "WARNING"
    assert settings.leaderboard_default_limit == 12


def test_resolved_paths():
    settings = Settings(_env_file=None, db_path="data/test.db", assets_dir="out/cards")
    assert settings.db_path_resolved.name == "test.db"
    assert settings.assets_dir_resolved.name == "cards"
