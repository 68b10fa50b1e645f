"""YAML configuration parser for CrossKit.

This module provides parsing and validation for crosskit.yaml configuration files.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from crosskit.core.exceptions import ConfigError, UnsupportedPlatformError
from crosskit.cross.components import components_from_config
from crosskit.providers.base import ComponentSpec
from crosskit.toolchain.descriptor import TOOL_NAMES

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "crosskit.yaml"
DEFAULT_OUTPUT_DIR = ".crosskit"


@dataclass
class InstallConfig:
    """Installation settings."""

    workers: int = 1
    timeout: float = 900.0
    use_sudo: str = "auto"  # 'auto', 'always', 'never'
    include_optional: bool = True
    components: Optional[List[ComponentSpec]] = None  # None = target catalogue


@dataclass
class ValidationConfig:
    """Validation settings."""

    workers: int = 1
    timeout: float = 120.0
    static_probe: bool = False


@dataclass
class CrossKitConfig:
    """Complete CrossKit configuration."""

    version: int = 1
    target: Optional[str] = None
    sysroot: Optional[str] = None
    compilers: Dict[str, str] = field(default_factory=dict)
    cpu_tuning: Optional[str] = None
    extra_flags: List[str] = field(default_factory=list)
    output_dir: str = DEFAULT_OUTPUT_DIR
    work_dir: Optional[str] = None
    install: InstallConfig = field(default_factory=InstallConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)


def parse_config(config_path: Path) -> CrossKitConfig:
    """
    Parse crosskit.yaml configuration file.

    Args:
        config_path: Path to crosskit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}") from e

    if data is None:
        raise ConfigError("Configuration file is empty")

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    return _parse_and_validate(data)


def load_config(project_root: Path, config_path: Optional[Path] = None) -> CrossKitConfig:
    """
    Load configuration for a project.

    An explicit config_path must exist. Without one, <project_root>/crosskit.yaml
    is used when present and defaults otherwise.

    Raises:
        ConfigError: If the configuration is invalid or an explicit file is missing
    """
    if config_path is not None:
        return parse_config(config_path)

    default_path = project_root / CONFIG_FILENAME
    if default_path.exists():
        logger.debug(f"Loading configuration from {default_path}")
        return parse_config(default_path)

    logger.debug(f"No {CONFIG_FILENAME} in {project_root}, using defaults")
    return CrossKitConfig()


def _parse_and_validate(data: dict) -> CrossKitConfig:
    """Parse and validate configuration data."""
    if "version" not in data:
        raise ConfigError("Missing required field: version")

    if data["version"] != 1:
        raise ConfigError(f"Unsupported version: {data['version']} (expected 1)")

    target = data.get("target")
    if target is not None and not isinstance(target, str):
        raise ConfigError("target must be a string")

    compilers = data.get("compilers") or {}
    if not isinstance(compilers, dict):
        raise ConfigError("compilers must be a dictionary")
    unknown = sorted(set(compilers) - set(TOOL_NAMES))
    if unknown:
        raise ConfigError(
            f"Unknown compilers keys: {', '.join(unknown)} (expected {list(TOOL_NAMES)})"
        )

    extra_flags = data.get("extra_flags") or []
    if not isinstance(extra_flags, list) or not all(
        isinstance(flag, str) for flag in extra_flags
    ):
        raise ConfigError("extra_flags must be a list of strings")

    return CrossKitConfig(
        version=data["version"],
        target=target,
        sysroot=data.get("sysroot"),
        compilers={name: str(path) for name, path in compilers.items() if path},
        cpu_tuning=data.get("cpu_tuning"),
        extra_flags=list(extra_flags),
        output_dir=data.get("output_dir", DEFAULT_OUTPUT_DIR),
        work_dir=data.get("work_dir"),
        install=_parse_install_config(_section(data, "install")),
        validation=_parse_validation_config(_section(data, "validation")),
    )


def _section(data: dict, name: str):
    section = data.get(name)
    return {} if section is None else section


def _parse_install_config(data: dict) -> InstallConfig:
    """Parse install section."""
    if not isinstance(data, dict):
        raise ConfigError("install must be a dictionary")

    use_sudo = data.get("use_sudo", "auto")
    if use_sudo not in ("auto", "always", "never"):
        raise ConfigError(
            f"Invalid install.use_sudo: {use_sudo} (expected auto, always, or never)"
        )

    components = None
    if data.get("components") is not None:
        components = _parse_components(data["components"])

    return InstallConfig(
        workers=_positive_int(data.get("workers", 1), "install.workers"),
        timeout=_positive_number(data.get("timeout", 900), "install.timeout"),
        use_sudo=use_sudo,
        include_optional=bool(data.get("include_optional", True)),
        components=components,
    )


def _parse_validation_config(data: dict) -> ValidationConfig:
    """Parse validation section."""
    if not isinstance(data, dict):
        raise ConfigError("validation must be a dictionary")

    return ValidationConfig(
        workers=_positive_int(data.get("workers", 1), "validation.workers"),
        timeout=_positive_number(data.get("timeout", 120), "validation.timeout"),
        static_probe=bool(data.get("static_probe", False)),
    )


def _parse_components(data: list) -> List[ComponentSpec]:
    """Parse install.components entries."""
    if not isinstance(data, list) or not data:
        raise ConfigError("install.components must be a non-empty list")

    names = set()
    for entry in data:
        if not isinstance(entry, dict) or "name" not in entry or "package" not in entry:
            raise ConfigError("Each component must specify 'name' and 'package'")
        if entry["name"] in names:
            raise ConfigError(f"Duplicate component name: {entry['name']}")
        names.add(entry["name"])
        overrides = entry.get("overrides")
        if overrides is not None and not isinstance(overrides, dict):
            raise ConfigError(f"Component {entry['name']}: overrides must be a dictionary")

    try:
        return components_from_config(data)
    except UnsupportedPlatformError as e:
        raise ConfigError(f"Invalid component override: {e}") from e
    except ValueError as e:
        raise ConfigError(f"Invalid component: {e}") from e


def _positive_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return value


def _positive_number(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{name} must be a positive number, got {value!r}")
    return float(value)


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_OUTPUT_DIR",
    "InstallConfig",
    "ValidationConfig",
    "CrossKitConfig",
    "parse_config",
    "load_config",
]
