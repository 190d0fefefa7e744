"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.availability import DEFAULT_WINDOW_PADDING_HOURS
from .domain.exceptions import InvalidInputError
from .domain.slot_generator import SLOT_GRANULARITY_MINUTES
from .domain.timezones import MINUTES_PER_DAY, resolve_timezone


class SupabaseConfig(BaseModel):
    """Connection settings for the Supabase REST API."""
    url: str
    service_key: str

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"Supabase url must start with http:// or https://, got {value!r}")
        return value.rstrip("/")


class DefaultsConfig(BaseModel):
    """Default settings for availability queries."""
    duration_minutes: int = 60
    granularity_minutes: int = SLOT_GRANULARITY_MINUTES
    window_padding_hours: int = DEFAULT_WINDOW_PADDING_HOURS
    client_timezone: str = "UTC"

    @field_validator("duration_minutes", "window_padding_hours")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure durations are positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Slots must tile a day evenly."""
        if value <= 0 or MINUTES_PER_DAY % value != 0:
            raise ValueError(f"granularity_minutes must divide {MINUTES_PER_DAY}, got {value}")
        return value

    @field_validator("client_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            resolve_timezone(value)
        except InvalidInputError as exc:
            raise ValueError(str(exc)) from exc
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    supabase: SupabaseConfig | None = None
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    log_level: str = "WARNING"
    mock_data_file: Path | None = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
