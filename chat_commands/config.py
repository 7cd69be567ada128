"""Configuration management for the slash-command interpreter."""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RouterConfig(BaseModel):
    """Configuration for command dispatch."""

    history_size: int = Field(default=100, description="Error reports kept for /errors")
    max_tips: int = Field(default=3, description="Tips shown after a successful command")

    @field_validator('history_size')
    @classmethod
    def validate_history_size(cls, v: int) -> int:
        """Validate history_size is within the supported window."""
        if v < 100 or v > 500:
            raise ValueError("history_size must be between 100 and 500")
        return v

    @field_validator('max_tips')
    @classmethod
    def validate_max_tips(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_tips cannot be negative")
        return v


class RecoveryConfig(BaseModel):
    """Configuration for automatic error recovery."""

    max_retries: int = Field(default=3, description="Maximum recovery attempts per session")
    base_delay: float = Field(default=1.0, description="Backoff base delay in seconds")
    max_sessions: int = Field(default=1000, description="Sessions with tracked retry state")

    @field_validator('max_retries')
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """Validate max_retries is reasonable."""
        if v < 0:
            raise ValueError("max_retries cannot be negative")
        if v > 10:
            raise ValueError("max_retries should not exceed 10 (excessive retrying)")
        return v

    @field_validator('base_delay')
    @classmethod
    def validate_base_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("base_delay cannot be negative")
        if v > 60:
            raise ValueError("base_delay should not exceed 60 seconds")
        return v

    @field_validator('max_sessions')
    @classmethod
    def validate_max_sessions(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_sessions must be positive")
        return v


class UIConfig(BaseModel):
    """Configuration for UI appearance."""

    theme: str = Field(default="default", description="Color theme name")
    use_colors: bool = Field(default=True, description="Enable colored output")


class AppConfig(BaseModel):
    """Main application configuration."""

    router: RouterConfig = Field(default_factory=RouterConfig)
    recovery: RecoveryConfig = Field(default_factory=RecoveryConfig)
    ui: UIConfig = Field(default_factory=UIConfig, description="UI configuration")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}")
        return level


def load_config_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load configuration from a YAML, TOML or JSON file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger = logging.getLogger(__name__)
    suffix = config_path.suffix.lower()

    try:
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                return tomllib.load(f)

        with open(config_path, 'r', encoding='utf-8') as f:
            if suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif suffix == '.json':
                return json.load(f) or {}
            else:
                raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    except Exception as e:
        logger.error(f"Failed to load config file {config_path}: {e}")
        raise


def find_config_file() -> Optional[Path]:
    """Find configuration file in standard locations."""
    search_paths = []
    for directory, stem in [
        (Path.cwd(), "config"),
        (Path.cwd(), ".chat-commands"),
        (Path.home() / ".config" / "chat-commands", "config"),
    ]:
        for suffix in (".yaml", ".yml", ".toml", ".json"):
            search_paths.append(directory / f"{stem}{suffix}")

    for config_path in search_paths:
        if config_path.exists():
            return config_path

    return None


def merge_config(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge configuration dictionaries with override taking precedence."""
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value

    return merged


def _remove_none_values(d: Any) -> Any:
    if isinstance(d, dict):
        return {k: _remove_none_values(v) for k, v in d.items() if v is not None}
    return d


def _parse_bool(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes', 'on')
    return value


def load_config(config_file: Optional[Union[str, Path]] = None) -> AppConfig:
    """Load configuration from multiple sources with priority order.

    Priority (highest to lowest):
    1. Environment variables
    2. Specified config file (if provided)
    3. Auto-discovered config file
    4. Default values

    Raises:
        FileNotFoundError: If ``config_file`` is given but does not exist
        pydantic.ValidationError: If a value is out of range
    """
    logger = logging.getLogger(__name__)

    config_data: Dict[str, Any] = {}

    if config_file:
        config_path = Path(config_file)
        if config_path.exists():
            config_data = load_config_file(config_path)
            logger.info(f"Loaded configuration from: {config_path}")
        else:
            raise FileNotFoundError(f"Specified config file not found: {config_path}")
    else:
        config_path = find_config_file()
        if config_path:
            config_data = load_config_file(config_path)
            logger.info(f"Auto-discovered configuration file: {config_path}")

    load_dotenv()

    env_config = _remove_none_values({
        "router": {
            "history_size": os.getenv("CHAT_COMMANDS_HISTORY_SIZE"),
            "max_tips": os.getenv("CHAT_COMMANDS_MAX_TIPS"),
        },
        "recovery": {
            "max_retries": os.getenv("CHAT_COMMANDS_MAX_RETRIES"),
            "base_delay": os.getenv("CHAT_COMMANDS_BASE_DELAY"),
            "max_sessions": os.getenv("CHAT_COMMANDS_MAX_SESSIONS"),
        },
        "ui": {
            "use_colors": os.getenv("CHAT_COMMANDS_USE_COLORS"),
        },
        "log_level": os.getenv("LOG_LEVEL"),
    })

    final_config = merge_config(config_data, env_config)

    ui_data = dict(final_config.get("ui") or {})
    if "use_colors" in ui_data:
        ui_data["use_colors"] = _parse_bool(ui_data["use_colors"])

    # pydantic coerces the numeric strings coming from the environment
    return AppConfig(
        router=RouterConfig(**(final_config.get("router") or {})),
        recovery=RecoveryConfig(**(final_config.get("recovery") or {})),
        ui=UIConfig(**ui_data),
        log_level=final_config.get("log_level", "INFO"),
    )
