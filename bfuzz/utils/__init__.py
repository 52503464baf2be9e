"""Utilities package initialization."""
from .config import load_yaml_config, load_settings, get_config_path, build_config, FuzzConfig, Settings
from .log import setup_logging

__all__ = [
    "load_yaml_config",
    "load_settings",
    "get_config_path",
    "build_config",
    "FuzzConfig",
    "Settings",
    "setup_logging",
]
