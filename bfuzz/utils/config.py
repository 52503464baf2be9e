"""Configuration utilities."""
import os
import re
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..fuzzer.models import ConfigError


class FuzzConfig(BaseModel):
    """Fuzz run configuration."""
    host: str
    port: int = Field(ge=1, le=65535)
    wordlist: Optional[str] = None
    batch_size: int = Field(default=1000, ge=1)
    timeout_ms: int = Field(default=250, ge=1)
    retries: int = Field(default=3, ge=1)
    newline: bool = True
    ignore: List[str] = Field(default_factory=list)
    ignore_regex: List[str] = Field(default_factory=list)
    connect_timeout: float = Field(default=3.0, gt=0)
    settle_delay_ms: int = Field(default=100, ge=0)

    @field_validator("ignore_regex")
    @classmethod
    def _check_patterns(cls, patterns: List[str]) -> List[str]:
        for pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid ignore pattern {pattern!r}: {e}")
        return patterns

    @property
    def timeout(self) -> float:
        """Per-read response timeout in seconds."""
        return self.timeout_ms / 1000

    @property
    def settle_delay(self) -> float:
        return self.settle_delay_ms / 1000


class Settings(BaseSettings):
    """Environment defaults (BFUZZ_*)."""
    batch_size: int = 1000
    timeout_ms: int = 250
    retries: int = 3
    settle_delay_ms: int = 100
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="BFUZZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def load_settings() -> Settings:
    """Read BFUZZ_* environment settings."""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigError(f"Invalid environment settings: {e}") from e


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """Load YAML configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file {config_path} is not valid YAML: {e}") from e

    # Replace environment variables
    return _replace_env_vars(config or {})


def _replace_env_vars(obj: Any) -> Any:
    """Recursively replace ${VAR} with environment variables."""
    if isinstance(obj, dict):
        return {k: _replace_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_replace_env_vars(item) for item in obj]
    elif isinstance(obj, str) and obj.startswith("${") and obj.endswith("}"):
        var_name = obj[2:-1]
        return os.getenv(var_name, obj)
    return obj


def get_config_path(filename: str) -> Path:
    """Get configuration file path."""
    # Try current directory first
    current_dir = Path.cwd() / "config" / filename
    if current_dir.exists():
        return current_dir

    # Try parent directory
    parent_dir = Path.cwd().parent / "config" / filename
    if parent_dir.exists():
        return parent_dir

    # Default to current directory
    return current_dir


def build_config(
    overrides: Dict[str, Any],
    config_path: Optional[str] = None,
    settings: Optional[Settings] = None
) -> FuzzConfig:
    """
    Merge configuration sources into a validated FuzzConfig.

    Precedence: overrides (CLI / tool arguments), then the YAML file,
    then BFUZZ_* environment settings, then built-in defaults. None
    values in overrides are treated as "not given".
    """
    settings = settings or load_settings()
    values: Dict[str, Any] = {
        "batch_size": settings.batch_size,
        "timeout_ms": settings.timeout_ms,
        "retries": settings.retries,
        "settle_delay_ms": settings.settle_delay_ms,
    }

    if config_path:
        file_values = load_yaml_config(config_path)
        if not isinstance(file_values, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        section = file_values.get("fuzz", file_values)
        if not isinstance(section, dict):
            raise ConfigError(f"'fuzz' section of {config_path} must be a mapping")
        values.update(section)

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return FuzzConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
