"""Tests for configuration loading."""

from pathlib import Path

import pytest

from site_monitor.config import get_settings, load_config


def test_defaults_without_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test defaults apply when no config file exists."""
    monkeypatch.delenv("EMAIL_API_KEY", raising=False)
    monkeypatch.delenv("EMAIL_FROM", raising=False)

    settings = get_settings(tmp_path / "missing.yaml")

    assert settings.coordinator.lock_ttl == 300
    assert settings.notifications.cooldown == 300
    assert settings.renderer.max_scroll_attempts == 5
    assert settings.renderer.stable_rounds == 2
    assert settings.batch.retry_count == 3
    assert settings.storage_dir == Path("data")
    assert not settings.email_enabled


def test_yaml_sections_and_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test YAML sections override defaults and secrets come from env."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "renderer:\n"
        "  max_scroll_attempts: 8\n"
        "  headless: false\n"
        "notifications:\n"
        "  cooldown: 60\n"
        "  sender: alerts@example.com\n"
        "paths:\n"
        f"  storage_dir: {tmp_path / 'store'}\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("EMAIL_API_KEY", "key-123")
    monkeypatch.delenv("EMAIL_FROM", raising=False)

    settings = get_settings(config_path)

    assert settings.renderer.max_scroll_attempts == 8
    assert settings.renderer.render_options().max_scroll_attempts == 8
    assert settings.renderer.headless is False
    assert settings.notifications.cooldown == 60
    assert settings.storage_dir == tmp_path / "store"
    assert settings.email_enabled


def test_email_from_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test EMAIL_FROM wins over the configured sender."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text("notifications:\n  sender: yaml@example.com\n", encoding="utf-8")
    monkeypatch.setenv("EMAIL_FROM", "env@example.com")

    assert get_settings(config_path).notifications.sender == "env@example.com"


def test_unknown_setting_rejected(tmp_path: Path) -> None:
    """Test typos in config keys are reported."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text("coordinator:\n  lock_tll: 10\n", encoding="utf-8")

    with pytest.raises(ValueError, match="lock_tll"):
        get_settings(config_path)


def test_empty_config_file(tmp_path: Path) -> None:
    """Test an empty file loads as no overrides."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text("", encoding="utf-8")

    assert load_config(config_path) == {}
