"""Configuration for Counsel.

Config discovery (first match wins):
  1. explicit ``path`` argument
  2. ``./counsel.yaml``
  3. ``~/.config/counsel/config.yaml``
  4. Built-in defaults
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from counsel.errors import ConfigError

_logger = logging.getLogger(__name__)


DEFAULT_MAX_ITERATIONS = 25


class ProviderConfig(BaseModel):
    provider: Literal["anthropic", "ollama"] = "anthropic"
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"  # anthropic only
    endpoint: str = "https://api.anthropic.com/v1/messages"  # anthropic only
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1:8b"
    max_tokens: int = 4096
    timeout: float = 120
    max_retries: int = 2  # retries before the first response byte only


class GatewayConfig(BaseModel):
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS, ge=1)
    profile_dir: str = "~/.counsel/profile"
    database_path: str = "~/.counsel/counsel.db"


_SEARCH_PATHS = [
    Path("./counsel.yaml"),
    Path.home() / ".config" / "counsel" / "config.yaml",
]


def load_config(path: str | Path | None = None) -> GatewayConfig:
    """Load configuration from YAML.

    Parameters
    ----------
    path:
        Explicit config path.  If *None*, search default locations.

    Raises
    ------
    ConfigError
        If the file exists but is not valid YAML or fails validation.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            _logger.warning("Config file not found: %s, using defaults", path)
            return GatewayConfig()
    else:
        for candidate in _SEARCH_PATHS:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is None:
        _logger.info("No config file found, using defaults")
        return GatewayConfig()

    _logger.info("Loading config from %s", config_path)
    try:
        with open(config_path) as f:
            raw: Any = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config root in {config_path} must be a mapping")

    try:
        return GatewayConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_path}: {e}") from e
