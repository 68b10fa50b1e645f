"""Configuration module for CrossKit.

This module provides YAML configuration parsing and validation for crosskit.yaml.
"""

from crosskit.config.parser import (
    CrossKitConfig,
    InstallConfig,
    ValidationConfig,
    load_config,
    parse_config,
)

__all__ = [
    "CrossKitConfig",
    "InstallConfig",
    "ValidationConfig",
    "load_config",
    "parse_config",
]
