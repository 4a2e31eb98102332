"""Project configuration for scaffolder."""

from .config import (
    Config,
    ConfigData,
    ConfigError,
    detect_package_manager,
    detect_project_root,
    normalize_plugins,
)

__all__ = [
    "Config",
    "ConfigData",
    "ConfigError",
    "detect_package_manager",
    "detect_project_root",
    "normalize_plugins",
]
