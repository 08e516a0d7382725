"""Tests for Accountsmith settings."""

from accountsmith.settings import AccountsmithSettings, get_settings, reload_settings


def test_defaults():
    """Test default settings values."""
    settings = AccountsmithSettings(_env_file=None)
    assert settings.log_level == "WARNING"
    assert settings.os_family is None
    assert settings.default_ssh_key_type == "ssh-rsa"


def test_environment_overrides(monkeypatch):
    """Test that ACCOUNTSMITH_ variables override defaults."""
    monkeypatch.setenv("ACCOUNTSMITH_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("accountsmith_os_family", "Solaris")

    settings = AccountsmithSettings(_env_file=None)
    assert settings.log_level == "DEBUG"
    assert settings.os_family == "Solaris"


def test_get_settings_is_cached():
    """Test that get_settings returns the same instance until reloaded."""
    first = get_settings()
    assert get_settings() is first
    assert reload_settings() is not first
