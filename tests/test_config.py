from __future__ import annotations

import json
from pathlib import Path

import pytest

from status_webhook.config import AppConfig, ConfigError, load_config


def _write(tmp_path: Path, data: dict) -> Path:
    p = tmp_path / "config.json"
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PORT", "DEBUG", "UPDATE_INTERVAL", "STATE_FILE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_load_upper_case_key_names(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {
            "DISCORD_WEBHOOK_URL": "https://discord.com/api/webhooks/1/token/",
            "MINECRAFT_DOMAIN": "Play.Example.NET",
            "DEBUG": True,
            "UPDATE_INTERVAL": 60000,
        },
    )
    cfg = load_config(str(path))
    assert cfg.discord_webhook_url == "https://discord.com/api/webhooks/1/token"
    assert cfg.minecraft_domain == "play.example.net"
    assert cfg.debug is True
    assert cfg.update_interval_seconds == 60.0
    assert cfg.port == 3000
    assert cfg.probe_timeout_seconds == 5.0


def test_defaults_and_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(
        tmp_path,
        {"discord_webhook_url": "https://discord.com/api/webhooks/1/t", "minecraft_domain": "a.example", "PORT": 1},
    )
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("DEBUG", "yes")
    cfg = load_config(str(path))
    assert cfg.port == 8080
    assert cfg.debug is True
    assert cfg.update_interval == 30000
    assert cfg.state_file == "message-state.json"


def test_yaml_config_is_accepted(tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text(
        "discord_webhook_url: https://discord.com/api/webhooks/1/t\n"
        "minecraft_domain: a.example\n"
        "branding:\n"
        "  version_label: '1.20.1'\n",
        encoding="utf-8",
    )
    cfg = load_config(str(p))
    assert cfg.branding.version_label == "1.20.1"


def test_missing_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(str(tmp_path / "config.json"))


def test_malformed_file_is_fatal(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text("{\"DISCORD_WEBHOOK_URL\": [", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(p))


@pytest.mark.parametrize(
    "data",
    [
        {"MINECRAFT_DOMAIN": "a.example"},
        {"DISCORD_WEBHOOK_URL": "https://discord.com/api/webhooks/1/t"},
        {"DISCORD_WEBHOOK_URL": "not-a-url", "MINECRAFT_DOMAIN": "a.example"},
        {"DISCORD_WEBHOOK_URL": "https://discord.com/api/webhooks/1/t", "MINECRAFT_DOMAIN": "  "},
        {"DISCORD_WEBHOOK_URL": "https://discord.com/api/webhooks/1/t", "MINECRAFT_DOMAIN": "a", "UPDATE_INTERVAL": 10},
    ],
)
def test_invalid_required_keys_are_fatal(tmp_path: Path, data: dict) -> None:
    with pytest.raises(ConfigError, match="Invalid config"):
        load_config(str(_write(tmp_path, data)))


def test_app_config_by_field_name() -> None:
    cfg = AppConfig(discord_webhook_url="https://x.example/api/webhooks/1/t", minecraft_domain="a.example")
    assert cfg.host == "0.0.0.0"
    assert cfg.state_path.name == "message-state.json"
