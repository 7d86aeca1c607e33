"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from site_monitor.adapters.notifications.email_sender import DEFAULT_API_URL
from site_monitor.core.renderer import RenderOptions


@dataclass
class RendererConfig:
    """Browser and scroll-extraction settings."""
    navigation_timeout: float = 30.0
    selector_timeout: float = 30.0
    max_scroll_attempts: int = 5
    settle_delay: float = 2.0
    growth_timeout: float = 3.0
    stable_rounds: int = 2
    headless: bool = True
    user_agent: Optional[str] = None
    viewport_width: int = 1920
    viewport_height: int = 1080
    executable_path: Optional[str] = None

    def render_options(self) -> RenderOptions:
        return RenderOptions(
            navigation_timeout=self.navigation_timeout,
            selector_timeout=self.selector_timeout,
            max_scroll_attempts=self.max_scroll_attempts,
            settle_delay=self.settle_delay,
            growth_timeout=self.growth_timeout,
            stable_rounds=self.stable_rounds,
        )


@dataclass
class CoordinatorConfig:
    """Scrape lock settings."""
    lock_ttl: float = 300.0


@dataclass
class NotificationsConfig:
    """Alert email settings."""
    cooldown: float = 300.0
    sender: Optional[str] = None
    api_url: str = DEFAULT_API_URL


@dataclass
class BatchConfig:
    """Batch check settings."""
    retry_count: int = 3
    initial_retry_delay: float = 2.0
    keep_snapshots: int = 10


@dataclass
class PathsConfig:
    """Path settings."""
    storage_dir: Path = Path("data")


@dataclass
class Settings:
    """Application settings."""

    # Secrets (from environment only)
    email_api_key: Optional[str] = None

    # Config sections
    renderer: RendererConfig = field(default_factory=RendererConfig)
    coordinator: CoordinatorConfig = field(default_factory=CoordinatorConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    @property
    def storage_dir(self) -> Path:
        return self.paths.storage_dir

    @property
    def email_enabled(self) -> bool:
        return bool(self.email_api_key and self.notifications.sender)


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _apply_section(section: object, values: dict) -> None:
    for key, value in values.items():
        if not hasattr(section, key):
            raise ValueError(f"Unknown setting {type(section).__name__}.{key}")
        setattr(section, key, value)


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(email_api_key=os.getenv("EMAIL_API_KEY") or None)

    if "renderer" in config:
        _apply_section(settings.renderer, config["renderer"])

    if "coordinator" in config:
        _apply_section(settings.coordinator, config["coordinator"])

    if "notifications" in config:
        _apply_section(settings.notifications, config["notifications"])

    if "batch" in config:
        _apply_section(settings.batch, config["batch"])

    if "paths" in config:
        for key, value in config["paths"].items():
            setattr(settings.paths, key, Path(value))

    email_from = os.getenv("EMAIL_FROM")
    if email_from:
        settings.notifications.sender = email_from

    return settings
