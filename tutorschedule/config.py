"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class ScheduleConfig(BaseModel):
    """Buffer and duration settings shared by slot generation and conflict checks."""
    buffer_minutes: int = 5
    slot_gap_minutes: int = 15
    default_duration_minutes: int = 60
    fallback_duration_minutes: int = 35
    duration_presets: List[int] = Field(default_factory=lambda: [35, 60, 90, 120])
    check_series_bounds: bool = False

    @field_validator("buffer_minutes", "slot_gap_minutes")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        """Buffers may be zero but never negative."""
        if value < 0:
            raise ValueError(f"Buffer minutes must not be negative, got {value}")
        return value

    @field_validator("default_duration_minutes", "fallback_duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure session durations are positive."""
        if value <= 0:
            raise ValueError("Durations must be greater than zero")
        return value

    @field_validator("duration_presets")
    @classmethod
    def validate_presets(cls, value: List[int]) -> List[int]:
        """Ensure presets are positive, deduplicated and ascending."""
        invalid = [preset for preset in value if preset <= 0]
        if invalid:
            raise ValueError(f"duration_presets must be positive, got {invalid}")
        return sorted(set(value))

    @model_validator(mode="after")
    def validate_default_in_range(self) -> "ScheduleConfig":
        """A session must fit inside one day."""
        if self.default_duration_minutes >= 24 * 60:
            raise ValueError("default_duration_minutes must be shorter than a day")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    data_file: Optional[Path] = None
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept standard logging level names in any case."""
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

        config = cls(**data)
        if config.data_file is not None and not config.data_file.is_absolute():
            config.data_file = config_path.parent / config.data_file
        return config

    @classmethod
    def load_or_default(cls, config_path: Optional[Path]) -> "AppConfig":
        """
        Load an explicitly given config, else the default path if present,
        else built-in defaults.
        """
        if config_path is not None:
            return cls.load_from_yaml(config_path)

        default_path = get_default_config_path()
        if default_path.exists():
            return cls.load_from_yaml(default_path)
        return cls()


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
