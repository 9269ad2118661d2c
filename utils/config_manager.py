"""Configuration management for the experience roster client."""

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

from .exceptions import ConfigurationError
from .remote_store import DEFAULT_API_URL

logger = logging.getLogger(__name__)

API_URL_ENV = "ROSTER_API_URL"


@dataclass
class ClientSettings:
    """User configuration settings."""

    # API connection
    api_base_url: str = DEFAULT_API_URL
    request_timeout: float = 20.0

    # "eager" resolves every experience id on load,
    # "lazy" queries a user's experiences when the row is expanded
    resolver_mode: str = "eager"

    # Display
    bio_preview_chars: int = 50
    log_level: str = "INFO"

    def validate(self) -> None:
        if self.resolver_mode not in ("eager", "lazy"):
            raise ConfigurationError(f"resolver_mode must be eager or lazy, not {self.resolver_mode!r}")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")
        if not self.api_base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"api_base_url is not an http(s) URL: {self.api_base_url}")


class ConfigManager:
    """Manages application configuration and user settings."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration manager."""
        if config_dir is None:
            self.config_dir = Path.home() / ".experience_roster"
        else:
            self.config_dir = config_dir

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file = self.config_dir / "config.json"
        self.settings = self._load_settings()

    def _load_settings(self) -> ClientSettings:
        """Load settings from configuration file, then apply the environment."""
        settings = ClientSettings()
        if self.config_file.exists():
            try:
                with open(self.config_file, "r") as f:
                    data = json.load(f)

                # Ignore unknown keys so older files keep loading
                settings_dict = {
                    name: data[name]
                    for name in ClientSettings.__dataclass_fields__
                    if name in data
                }
                settings = ClientSettings(**settings_dict)

            except (json.JSONDecodeError, TypeError, ValueError) as e:
                logger.warning("Failed to load config %s: %s", self.config_file, e)
                settings = ClientSettings()

        env_url = os.getenv(API_URL_ENV)
        if env_url:
            settings.api_base_url = env_url
        return settings

    def save_settings(self) -> None:
        """Save current settings to configuration file."""
        try:
            with open(self.config_file, "w") as f:
                json.dump(asdict(self.settings), f, indent=2)
        except OSError as e:
            logger.warning("Failed to save config %s: %s", self.config_file, e)

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a specific setting value."""
        return getattr(self.settings, key, default)

    def set_setting(self, key: str, value: Any) -> None:
        """Set a specific setting value."""
        if not hasattr(self.settings, key):
            raise ConfigurationError(f"unknown setting: {key}")
        previous = getattr(self.settings, key)
        setattr(self.settings, key, value)
        try:
            self.settings.validate()
        except ConfigurationError:
            setattr(self.settings, key, previous)
            raise
        self.save_settings()

    def reset_to_defaults(self) -> None:
        """Reset all settings to defaults."""
        self.settings = ClientSettings()
        self.save_settings()


# Global config instance
_config_manager = None


def get_config() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
