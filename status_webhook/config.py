"""Configuration management for the status webhook."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator


DEFAULT_CONFIG_PATH = "config.json"


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded. Fatal at startup."""


class BrandingConfig(BaseModel):
    """Static content rendered into every Discord notification."""
    username: str = Field(default="Minecraft Status Bot", description="Webhook display name")
    avatar_url: str = Field(
        default=(
            "https://www.minecraft.net/content/dam/minecraftnet/games/minecraft/logos/"
            "Homepage_Gameplay-Trailer_MC-OV-logo_300x300.png"
        ),
        description="Webhook avatar",
    )
    title: str = Field(default="MINECRAFT SERVER STATUS", description="Embed title")
    footer: str = Field(default="Magic Art Hat - Minecraft Status", description="Embed footer text")
    version_label: str = Field(default="1.21.5", description="Server version shown in the embed")
    voice_chat_modrinth_url: str = Field(default="https://modrinth.com/plugin/plasmo-voice")
    voice_chat_curseforge_url: str = Field(
        default="https://www.curseforge.com/minecraft/mc-mods/plasmo-voice"
    )
    whitelist_note: str = Field(
        default="If you are not on the whitelist, contact an administrator to get access",
        description="Whitelist field text",
    )


class AppConfig(BaseModel):
    """Main configuration, loaded once at process start."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Required
    discord_webhook_url: str = Field(
        validation_alias=AliasChoices("DISCORD_WEBHOOK_URL", "discord_webhook_url"),
        description="Discord webhook URL (contains the token)",
    )
    minecraft_domain: str = Field(
        validation_alias=AliasChoices("MINECRAFT_DOMAIN", "minecraft_domain"),
        description="Domain whose _minecraft._tcp SRV record is monitored",
    )

    # Behaviour
    debug: bool = Field(
        default=False,
        validation_alias=AliasChoices("DEBUG", "debug"),
        description="Log webhook payloads and error bodies",
    )
    update_interval: int = Field(
        default=30000,
        ge=1000,
        validation_alias=AliasChoices("UPDATE_INTERVAL", "update_interval"),
        description="Periodic check interval in milliseconds",
    )
    probe_timeout: int = Field(
        default=5000,
        ge=100,
        validation_alias=AliasChoices("PROBE_TIMEOUT", "probe_timeout"),
        description="TCP connect timeout in milliseconds",
    )
    dns_timeout_seconds: float = Field(default=5.0, gt=0, description="SRV lookup lifetime")
    webhook_timeout_seconds: float = Field(default=15.0, gt=0, description="Discord request timeout")

    # Process
    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("HOST", "host"))
    port: int = Field(default=3000, ge=1, le=65535, validation_alias=AliasChoices("PORT", "port"))
    state_file: str = Field(
        default="message-state.json",
        validation_alias=AliasChoices("STATE_FILE", "state_file"),
        description="Path of the persisted notification state",
    )
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))

    branding: BrandingConfig = Field(default_factory=BrandingConfig)

    @field_validator("discord_webhook_url")
    @classmethod
    def _check_webhook_url(cls, value: str) -> str:
        s = str(value or "").strip()
        if not s.startswith(("https://", "http://")):
            raise ValueError("must be an http(s) URL")
        return s.rstrip("/")

    @field_validator("minecraft_domain")
    @classmethod
    def _check_domain(cls, value: str) -> str:
        s = str(value or "").strip().lower().rstrip(".")
        if not s:
            raise ValueError("must not be empty")
        return s

    @property
    def update_interval_seconds(self) -> float:
        return self.update_interval / 1000.0

    @property
    def probe_timeout_seconds(self) -> float:
        return self.probe_timeout / 1000.0

    @property
    def state_path(self) -> Path:
        return Path(self.state_file)


def _env_overrides() -> Dict[str, Any]:
    overrides = {
        "port": os.getenv("PORT"),
        "debug": os.getenv("DEBUG"),
        "update_interval": os.getenv("UPDATE_INTERVAL"),
        "state_file": os.getenv("STATE_FILE"),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    out: Dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None or not str(value).strip():
            continue
        if key == "debug":
            out[key] = str(value).strip().lower() in ("true", "1", "yes", "on")
        else:
            out[key] = str(value).strip()
    return out


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from a JSON/YAML file plus environment overrides.

    Raises ConfigError for a missing file, a malformed document or missing
    required keys.
    """
    if config_path is None:
        config_path = os.getenv("STATUS_WEBHOOK_CONFIG", DEFAULT_CONFIG_PATH)

    path = Path(config_path)
    if not path.exists():
        raise ConfigError(
            f"Config file not found: {path}. Copy config.example.json to {path.name} and fill it in."
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    # Env overrides win over file values, whichever key spelling the file used.
    for key, value in _env_overrides().items():
        for spelling in (key, key.upper()):
            data.pop(spelling, None)
        data[key] = value

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid config in {path}: {problems}") from e
