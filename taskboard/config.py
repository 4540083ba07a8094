# Task board — configuration
# Override defaults via taskboard.yaml or TASKBOARD_* environment variables.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Optional

CONFIG_PATH = Path(__file__).parent.parent / "taskboard.yaml"

# Environment variable → field name
ENV_OVERRIDES = {
    "TASKBOARD_API_URL": "api_url",
    "TASKBOARD_LOG_LEVEL": "log_level",
}


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


@dataclass
class Config:
    """Runtime configuration for the board client."""

    # Remote task service
    api_url: str = "http://localhost:4000"
    request_timeout: float = 10.0

    # Behavior — UI timings
    search_debounce_ms: int = 300
    notification_dismiss_secs: float = 3.0
    drag_activation_distance: float = 8.0

    log_level: str = "INFO"

    def normalize(self):
        """Coerce numeric fields and tidy the API URL."""
        self.api_url = str(self.api_url).rstrip("/")
        self.log_level = str(self.log_level).upper()
        for name, kind in (
            ("request_timeout", float),
            ("search_debounce_ms", int),
            ("notification_dismiss_secs", float),
            ("drag_activation_distance", float),
        ):
            value = getattr(self, name)
            try:
                setattr(self, name, kind(value))
            except (TypeError, ValueError):
                raise ConfigError(f"{name} must be a number, got: {value!r}")
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0, got: {value!r}")

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults, then apply env overrides."""
        cfg_path = Path(path) if path else CONFIG_PATH
        data = {}
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {cfg_path}: {e}")
            if not isinstance(data, dict):
                raise ConfigError(f"{cfg_path} must contain a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        cfg = cls(**{k: v for k, v in data.items() if k in known})

        for env_name, field_name in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                setattr(cfg, field_name, value)

        cfg.normalize()
        return cfg
