"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

# The YouTube Data API refuses maxResults above this.
MAX_RESULTS_LIMIT = 50


class SurgeConfig(BaseModel):
    """A validated configuration model for the application."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Remote API
    api_key: str = ""
    max_results: int = 25
    cache_ttl_hours: int = 24

    # Downloads
    download_path: str = "~/Music/surge"
    audio_format: str = "bestaudio/best"
    download_retries: int = 3

    # Display
    show_thumbnails: bool = True
    thumbnail_scale: float = 0.5

    # Internal fields not loaded from INI file
    config_path: str = Field(..., repr=False)

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if not v:
            raise ValueError(
                "API key is not configured. Run 'surge init <API_KEY>' first."
            )
        return v

    @field_validator("max_results")
    @classmethod
    def validate_max_results(cls, v: int) -> int:
        if v < 1 or v > MAX_RESULTS_LIMIT:
            raise ValueError(f"max_results must be between 1 and {MAX_RESULTS_LIMIT}.")
        return v

    @field_validator("cache_ttl_hours")
    @classmethod
    def validate_cache_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache_ttl_hours cannot be negative (use 0 to disable).")
        return v

    @field_validator("download_path")
    @classmethod
    def validate_download_path(cls, v: str) -> str:
        if not v:
            raise ValueError("download_path cannot be empty.")
        return v

    @field_validator("download_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0 or v > 10:
            raise ValueError("download_retries must be between 0 and 10.")
        return v

    @field_validator("thumbnail_scale")
    @classmethod
    def validate_scale(cls, v: float) -> float:
        """Thumbnails are shrunk relative to the terminal, never enlarged past it."""
        if v <= 0 or v > 1:
            raise ValueError("thumbnail_scale must be greater than 0 and at most 1.")
        return v

    @property
    def download_dir(self) -> Path:
        return Path(self.download_path).expanduser()

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        return {key for key in cls.model_fields if key != "config_path"}
