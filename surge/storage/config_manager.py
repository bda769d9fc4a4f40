"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from surge.exceptions import ConfigurationError
from surge.models.config import SurgeConfig

log = logging.getLogger(__name__)

SECRET_KEYS = {"api_key"}


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, overrides: dict[str, Any] | None = None) -> SurgeConfig:
        """
        Loads configuration from the INI file, applies overrides, and validates it.

        Args:
            overrides: Settings that take precedence over the file.

        Returns:
            A validated SurgeConfig object.

        Raises:
            ConfigurationError: If the config file is missing, invalid, or validation
            fails.
        """
        if not self.config_file_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'. "
                "Please run 'surge init <API_KEY>' first."
            )

        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

        if self._migrate_if_needed():
            log.info(
                "[yellow]Configuration file was updated with new default values."
                "[/yellow]"
            )

        try:
            config_from_file = self.get_config_as_dict()
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e

        if overrides:
            config_from_file.update(overrides)

        try:
            config_dir = self.config_file_path.parent
            return SurgeConfig(**config_from_file, config_path=str(config_dir))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save. Keys not given fall back
            to the model defaults.
        """
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}

        defaults = SurgeConfig.model_construct()
        for key in sorted(SurgeConfig.get_ini_keys()):
            value = settings.get(key, getattr(defaults, key, None))
            if isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            elif value is not None:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        defaults = SurgeConfig.model_construct()
        return {
            "api_key": section.get("api_key", ""),
            "max_results": section.getint("max_results", defaults.max_results),
            "cache_ttl_hours": section.getint(
                "cache_ttl_hours", defaults.cache_ttl_hours
            ),
            "download_path": section.get("download_path", defaults.download_path),
            "audio_format": section.get("audio_format", defaults.audio_format),
            "download_retries": section.getint(
                "download_retries", defaults.download_retries
            ),
            "show_thumbnails": section.getboolean(
                "show_thumbnails", defaults.show_thumbnails
            ),
            "thumbnail_scale": section.getfloat(
                "thumbnail_scale", defaults.thumbnail_scale
            ),
        }

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = SurgeConfig.model_construct()
        needs_saving = False

        config_section = self._parser["DEFAULT"]

        for key in sorted(SurgeConfig.get_ini_keys()):
            if key in config_section or key in SECRET_KEYS:
                continue
            default_value = getattr(defaults, key)
            if isinstance(default_value, bool):
                config_section[key] = "true" if default_value else "false"
            else:
                config_section[key] = str(default_value)
            needs_saving = True
            log.debug(
                f"Migrating config: added missing key '{key}' with "
                f"value '{config_section[key]}'."
            )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
