"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from datetime import time
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import ShopHours, parse_time_of_day

ENV_BACKEND_URL = "SHOPSLOTS_BACKEND_URL"
ENV_BACKEND_ANON_KEY = "SHOPSLOTS_BACKEND_ANON_KEY"

_PLACEHOLDER_MARKERS = ("your_", "placeholder")


def _is_placeholder(value: str) -> bool:
    lowered = value.lower()
    return any(marker in lowered for marker in _PLACEHOLDER_MARKERS)


class BackendConfig(BaseModel):
    """Connection settings for the hosted backend."""
    url: str
    anon_key: str
    timeout_seconds: float = 30

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """Ensure the endpoint is a real HTTP(S) URL."""
        value = value.strip()
        if not value:
            raise ValueError("backend.url must not be empty")
        if _is_placeholder(value):
            raise ValueError(
                "backend.url appears to be a placeholder. "
                "Replace it with your project URL, e.g. https://xxxxxxxxxxxxx.supabase.co"
            )
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"backend.url must be a valid HTTP or HTTPS URL, got {value!r}")
        return value.rstrip("/")

    @field_validator("anon_key")
    @classmethod
    def validate_anon_key(cls, value: str) -> str:
        """Ensure a usable credential is configured."""
        value = value.strip()
        if not value:
            raise ValueError("backend.anon_key must not be empty")
        if _is_placeholder(value):
            raise ValueError("backend.anon_key appears to be a placeholder")
        return value

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value


class DefaultsConfig(BaseModel):
    """Fallback shop hours and booking rules."""
    opening_time: str = "09:00"
    closing_time: str = "18:00"
    booking_window_days: int = 30

    @field_validator("opening_time", "closing_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Validate the value parses as HH:MM[:SS]."""
        try:
            parse_time_of_day(value)
        except ValueError as exc:
            raise ValueError(f"Invalid time of day {value!r}, expected HH:MM") from exc
        return value

    @field_validator("booking_window_days")
    @classmethod
    def validate_window(cls, value: int) -> int:
        if value < 0:
            raise ValueError("booking_window_days must not be negative")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the default day opens before it closes."""
        if self.get_closing_time() <= self.get_opening_time():
            raise ValueError("closing_time must be later than opening_time")
        return self

    def get_opening_time(self) -> time:
        return parse_time_of_day(self.opening_time)

    def get_closing_time(self) -> time:
        return parse_time_of_day(self.closing_time)

    def get_shop_hours(self) -> ShopHours:
        """Get the default hours as a ShopHours object."""
        return ShopHours(opening=self.get_opening_time(), closing=self.get_closing_time())


class LocalConfig(BaseModel):
    """
    Settings that do not involve the hosted backend.

    Used in mock mode. A ``backend`` section in the file is ignored.
    """
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    timezone: str = "Europe/Berlin"

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "LocalConfig":
        """
        Load the local settings from a YAML file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        return cls(**_read_yaml(config_path))


class AppConfig(LocalConfig):
    """Application configuration."""
    backend: BackendConfig

    @classmethod
    def load_from_yaml(
        cls,
        config_path: Path,
        environ: Optional[Mapping[str, str]] = None
    ) -> "AppConfig":
        """
        Load configuration from YAML file.

        ``SHOPSLOTS_BACKEND_URL`` and ``SHOPSLOTS_BACKEND_ANON_KEY`` override
        the backend values from the file.

        Args:
            config_path: Path to the YAML config file
            environ: Environment mapping (defaults to ``os.environ``)

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        data = _read_yaml(config_path)
        return cls(**apply_env_overrides(data, os.environ if environ is None else environ))


def _read_yaml(config_path: Path) -> dict:
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
    return data


def apply_env_overrides(data: dict, environ: Mapping[str, str]) -> dict:
    """Return a copy of ``data`` with backend settings taken from the environment."""
    merged = dict(data)
    backend = dict(merged.get("backend") or {})

    url = environ.get(ENV_BACKEND_URL, "").strip()
    if url:
        backend["url"] = url

    anon_key = environ.get(ENV_BACKEND_ANON_KEY, "").strip()
    if anon_key:
        backend["anon_key"] = anon_key

    if backend:
        merged["backend"] = backend
    return merged


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
