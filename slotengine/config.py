"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path
from typing import Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.aggregator import UsersSource

CONFIG_FILE_NAME = "slotengine.yaml"


class BookingConfig(BaseModel):
    """Where relayed bookings are sent."""
    base_url: str = "http://localhost:3000"
    timeout_seconds: float = 30

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    data_file: Path = Path("data.json")
    timezone: str = "UTC"
    log_level: str = "INFO"
    debug: bool = False
    users_source: UsersSource = UsersSource.EVENT_HOSTS
    dynamic_event_length: int = 15
    booking: BookingConfig = Field(default_factory=BookingConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the time zone is known."""
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("dynamic_event_length")
    @classmethod
    def validate_dynamic_event_length(cls, value: int) -> int:
        """Ensure the default meeting length is positive."""
        if value <= 0:
            raise ValueError("dynamic_event_length must be greater than zero")
        return value

    def get_log_level(self) -> int:
        """Numeric logging level; debug mode wins over log_level."""
        if self.debug:
            return logging.DEBUG
        return logging.getLevelName(self.log_level)

    def resolve_data_file(self, config_path: Optional[Path] = None) -> Path:
        """Relative data files are looked up next to the config file."""
        if self.data_file.is_absolute() or config_path is None:
            return self.data_file
        return config_path.parent / self.data_file

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
                f"Please create a {CONFIG_FILE_NAME} file. See slotengine.example.yaml for reference."
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
    # Look for the config in the current directory
    current_dir = Path.cwd()
    config_path = current_dir / CONFIG_FILE_NAME

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / CONFIG_FILE_NAME

    return config_path
