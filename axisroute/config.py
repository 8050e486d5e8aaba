"""
Configuration module with strict environment variable validation.
NO FALLBACKS - all required variables must be explicitly set.

Tunables (poll intervals, convergence budget, radius limits) are centralized
in config.yaml - modify there, not in code.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Any

import yaml


class ConfigurationError(Exception):
    """Raised when required configuration is missing."""
    pass


# Load YAML config once at module level
_CONFIG_PATH = Path(__file__).parent / "config.yaml"
_YAML_CONFIG: dict = {}


def _load_yaml_config() -> dict:
    """Load configuration from config.yaml file."""
    global _YAML_CONFIG
    if not _YAML_CONFIG:
        if _CONFIG_PATH.exists():
            with open(_CONFIG_PATH, "r") as f:
                _YAML_CONFIG = yaml.safe_load(f) or {}
        else:
            raise ConfigurationError(f"Configuration file not found: {_CONFIG_PATH}")
    return _YAML_CONFIG


def get_yaml_setting(*keys: str, default: Any = None) -> Any:
    """
    Get a setting from config.yaml using dot notation.

    Example: get_yaml_setting("readiness", "ready_interval_seconds") -> 15
    """
    config = _load_yaml_config()
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


def get_required_env(key: str) -> str:
    """Get a required environment variable. Raises if not set."""
    value = os.environ.get(key)
    if value is None or value.strip() == "":
        raise ConfigurationError(
            f"Missing required environment variable: {key}\n"
            f"Please set {key} in your .env file or environment."
        )
    return value.strip()


def get_optional_env(key: str) -> Optional[str]:
    """Get an optional environment variable. Returns None if not set."""
    value = os.environ.get(key)
    if value is None or value.strip() == "":
        return None
    return value.strip()


@dataclass(frozen=True)
class EngineSettings:
    """Timing and limit tunables for the orchestration engine."""

    ready_interval_seconds: float = 15.0
    backoff_seed: tuple[int, int] = (1, 1)
    convergence_attempts: int = 10
    convergence_delay_seconds: float = 0.5
    default_radius_meters: float = 200.0
    min_radius_meters: float = 50.0
    max_radius_meters: float = 2000.0
    radius_step_meters: float = 50.0
    http_timeout_seconds: float = 30.0

    @classmethod
    def from_yaml(cls) -> "EngineSettings":
        """Build settings from config.yaml, keeping defaults for absent keys."""
        defaults = cls()
        seed = get_yaml_setting("readiness", "backoff_seed", default=list(defaults.backoff_seed))
        return cls(
            ready_interval_seconds=float(
                get_yaml_setting("readiness", "ready_interval_seconds", default=defaults.ready_interval_seconds)
            ),
            backoff_seed=(int(seed[0]), int(seed[1])),
            convergence_attempts=int(
                get_yaml_setting("blockages", "convergence_attempts", default=defaults.convergence_attempts)
            ),
            convergence_delay_seconds=float(
                get_yaml_setting("blockages", "convergence_delay_seconds", default=defaults.convergence_delay_seconds)
            ),
            default_radius_meters=float(
                get_yaml_setting("blockages", "default_radius_meters", default=defaults.default_radius_meters)
            ),
            min_radius_meters=float(
                get_yaml_setting("blockages", "min_radius_meters", default=defaults.min_radius_meters)
            ),
            max_radius_meters=float(
                get_yaml_setting("blockages", "max_radius_meters", default=defaults.max_radius_meters)
            ),
            radius_step_meters=float(
                get_yaml_setting("blockages", "radius_step_meters", default=defaults.radius_step_meters)
            ),
            http_timeout_seconds=float(
                get_yaml_setting("http", "timeout_seconds", default=defaults.http_timeout_seconds)
            ),
        )


@dataclass(frozen=True)
class Config:
    """Application configuration - immutable after creation."""

    # Server settings - REQUIRED
    backend_port: int
    backend_host: str

    # Remote routing service - REQUIRED
    routing_api_base_url: str

    # Road-type presets may be served by a separate deployment
    road_types_api_base_url: Optional[str]

    cors_origins: list[str]

    engine: EngineSettings

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""

        # Required settings
        backend_port = int(get_required_env("BACKEND_PORT"))
        backend_host = get_required_env("BACKEND_HOST")
        routing_api_base_url = get_required_env("ROUTING_API_BASE_URL").rstrip("/")

        # Optional settings
        road_types_api_base_url = get_optional_env("ROAD_TYPES_API_BASE_URL")
        if road_types_api_base_url:
            road_types_api_base_url = road_types_api_base_url.rstrip("/")

        cors_origins_str = get_optional_env("CORS_ORIGINS") or "*"
        cors_origins = [origin.strip() for origin in cors_origins_str.split(",")]

        return cls(
            backend_port=backend_port,
            backend_host=backend_host,
            routing_api_base_url=routing_api_base_url,
            road_types_api_base_url=road_types_api_base_url,
            cors_origins=cors_origins,
            engine=EngineSettings.from_yaml(),
        )


def load_config() -> Config:
    """Load and validate configuration."""
    from dotenv import load_dotenv

    # Load .env file if present
    load_dotenv()

    return Config.from_env()
